from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from agri_monitor.core.database import get_db
from agri_monitor.crud import recommendation_crud, sensor_crud, settings_crud
from agri_monitor.schemas import (
    Alert,
    AlertListResponse,
    PushPermissionUpdate,
    ReadingIn,
    RecommendationIn,
    RecommendationListResponse,
    RecommendationOut,
    Sensor,
    SensorIn,
    SensorReading,
    ThresholdBand,
    ThresholdUpdate,
)
from agri_monitor.services import DashboardSession, merge_bands
from agri_monitor.services.events import RECOMMENDATIONS, SENSOR_READINGS, SENSORS
from agri_monitor.services.ingestion import reading_from_row, sensor_from_row

router = APIRouter()


def get_dashboard_session(request: Request) -> DashboardSession:
    return request.app.state.dashboard_session


def _serialize_bands(bands: dict[str, ThresholdBand]) -> dict[str, Any]:
    return {category: band.model_dump() for category, band in bands.items()}


def _alert_list(session: DashboardSession, alerts: list[Alert]) -> AlertListResponse:
    return AlertListResponse(items=alerts, count=len(alerts), unread_count=session.store.unread_count)


def _load_sensor(db: Session, sensor_id: int) -> Sensor:
    row = sensor_crud.get(db, sensor_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Sensor not found")
    bands = merge_bands(settings_crud.get_overrides(db))
    return sensor_from_row(row, sensor_crud.latest_reading(db, row.id), bands)


def _set_recommendation_status(
    db: Session,
    session: DashboardSession,
    recommendation_id: int,
    status: str,
) -> RecommendationOut:
    recommendation = recommendation_crud.update_status(db, recommendation_id, status)
    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    session.bus.publish(RECOMMENDATIONS, {"id": recommendation_id, "status": status})
    return RecommendationOut.model_validate(recommendation)


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/sensors", response_model=list[Sensor])
def list_sensors(db: Session = Depends(get_db)) -> list[Sensor]:
    bands = merge_bands(settings_crud.get_overrides(db))
    return [sensor_from_row(row, sensor_crud.latest_reading(db, row.id), bands) for row in sensor_crud.get_multi(db)]


@router.post("/sensors", response_model=Sensor, status_code=201)
def create_sensor(
    payload: SensorIn,
    db: Session = Depends(get_db),
    session: DashboardSession = Depends(get_dashboard_session),
) -> Sensor:
    row = sensor_crud.create(
        db,
        {
            "name": payload.name,
            "category": payload.category,
            "location_lat": payload.latitude,
            "location_lng": payload.longitude,
        },
    )
    session.bus.publish(SENSORS, {"id": row.id})
    return _load_sensor(db, row.id)


@router.get("/sensors/{sensor_id}", response_model=Sensor)
def get_sensor(sensor_id: int, db: Session = Depends(get_db)) -> Sensor:
    return _load_sensor(db, sensor_id)


@router.post("/sensors/{sensor_id}/readings", response_model=SensorReading, status_code=201)
def ingest_reading(
    sensor_id: int,
    payload: ReadingIn,
    db: Session = Depends(get_db),
    session: DashboardSession = Depends(get_dashboard_session),
) -> SensorReading:
    if sensor_crud.get(db, sensor_id) is None:
        raise HTTPException(status_code=404, detail="Sensor not found")

    row = sensor_crud.add_reading(db, sensor_id, payload.value, payload.unit, payload.timestamp)
    session.bus.publish(SENSOR_READINGS, {"sensor_id": sensor_id})
    return reading_from_row(row)


@router.get("/readings", response_model=list[SensorReading])
def get_readings(
    hours: int = Query(default=24, ge=1, le=168),
    db: Session = Depends(get_db),
) -> list[SensorReading]:
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    return [reading_from_row(row) for row in sensor_crud.get_window_readings(db, since)]


@router.get("/dashboard")
def get_dashboard(session: DashboardSession = Depends(get_dashboard_session)) -> dict[str, Any]:
    if session.state == "error":
        raise HTTPException(status_code=502, detail=session.error)
    if session.snapshot is None and session.refresh() is None:
        raise HTTPException(status_code=502, detail=session.error)

    return {
        "state": session.state,
        "snapshot": session.snapshot.model_dump(mode="json"),
        "alerts": _alert_list(session, session.store.recent()).model_dump(mode="json"),
    }


@router.post("/dashboard/refresh")
def refresh_dashboard(session: DashboardSession = Depends(get_dashboard_session)) -> dict[str, Any]:
    snapshot = session.refresh()
    if snapshot is None:
        raise HTTPException(status_code=502, detail=session.error)

    return {
        "state": session.state,
        "snapshot": snapshot.model_dump(mode="json"),
        "alerts": _alert_list(session, session.store.recent()).model_dump(mode="json"),
    }


@router.get("/alerts", response_model=AlertListResponse)
def get_alerts(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=1000),
    session: DashboardSession = Depends(get_dashboard_session),
) -> AlertListResponse:
    alerts = session.store.alerts
    if unread_only:
        alerts = [alert for alert in alerts if not alert.acknowledged]
    return _alert_list(session, alerts[:limit])


@router.post("/alerts/{alert_id}/acknowledge", response_model=Alert)
def acknowledge_alert(alert_id: int, session: DashboardSession = Depends(get_dashboard_session)) -> Alert:
    alert = session.acknowledge(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.delete("/alerts")
def clear_alerts(session: DashboardSession = Depends(get_dashboard_session)) -> dict[str, int]:
    return {"cleared": session.clear_alerts()}


@router.get("/notifications/permission")
def get_push_permission(session: DashboardSession = Depends(get_dashboard_session)) -> dict[str, str]:
    return {"permission": session.engine.push_permission}


@router.put("/notifications/permission")
def update_push_permission(
    payload: PushPermissionUpdate,
    session: DashboardSession = Depends(get_dashboard_session),
) -> dict[str, str]:
    session.set_push_permission(payload.permission)
    return {"permission": session.engine.push_permission}


@router.get("/settings/thresholds")
def get_thresholds(db: Session = Depends(get_db)) -> dict[str, Any]:
    return _serialize_bands(merge_bands(settings_crud.get_overrides(db)))


@router.put("/settings/thresholds")
def update_thresholds(
    payload: ThresholdUpdate,
    db: Session = Depends(get_db),
    session: DashboardSession = Depends(get_dashboard_session),
) -> dict[str, Any]:
    try:
        band = ThresholdBand(low=payload.low, high=payload.high)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="low must be lower than high") from exc

    settings_crud.update_band(db, payload.category, band)
    session.bus.publish(SENSORS, {"category": payload.category})
    return _serialize_bands(merge_bands(settings_crud.get_overrides(db)))


@router.get("/recommendations", response_model=RecommendationListResponse)
def get_recommendations(
    limit: int = Query(default=5, ge=1, le=100),
    db: Session = Depends(get_db),
) -> RecommendationListResponse:
    items = [RecommendationOut.model_validate(item) for item in recommendation_crud.get_pending(db, limit=limit)]
    return RecommendationListResponse(items=items, count=len(items))


@router.post("/recommendations", response_model=RecommendationOut, status_code=201)
def create_recommendation(
    payload: RecommendationIn,
    db: Session = Depends(get_db),
    session: DashboardSession = Depends(get_dashboard_session),
) -> RecommendationOut:
    if payload.sensor_id is not None and sensor_crud.get(db, payload.sensor_id) is None:
        raise HTTPException(status_code=404, detail="Sensor not found")

    recommendation = recommendation_crud.create(db, payload.model_dump())
    session.bus.publish(RECOMMENDATIONS, {"id": recommendation.id, "status": recommendation.status})
    return RecommendationOut.model_validate(recommendation)


@router.post("/recommendations/{recommendation_id}/apply", response_model=RecommendationOut)
def apply_recommendation(
    recommendation_id: int,
    db: Session = Depends(get_db),
    session: DashboardSession = Depends(get_dashboard_session),
) -> RecommendationOut:
    return _set_recommendation_status(db, session, recommendation_id, "applied")


@router.post("/recommendations/{recommendation_id}/dismiss", response_model=RecommendationOut)
def dismiss_recommendation(
    recommendation_id: int,
    db: Session = Depends(get_db),
    session: DashboardSession = Depends(get_dashboard_session),
) -> RecommendationOut:
    return _set_recommendation_status(db, session, recommendation_id, "dismissed")
