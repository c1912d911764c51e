import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import asc, desc, select
from sqlalchemy.orm import Session

from agri_monitor.models.sensor import Sensor
from agri_monitor.models.sensor_reading import SensorReading

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CRUDSensor:
    def create(self, db: Session, obj_in: Dict[str, Any]) -> Sensor:
        db_obj = Sensor(**obj_in)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get(self, db: Session, id: int) -> Optional[Sensor]:
        return db.get(Sensor, id)

    def get_multi(self, db: Session, skip: int = 0, limit: int = 500) -> List[Sensor]:
        query = select(Sensor).order_by(desc(Sensor.created_at), desc(Sensor.id)).offset(skip).limit(limit)
        return list(db.execute(query).scalars().all())

    def add_reading(
        self,
        db: Session,
        sensor_id: int,
        value: float,
        unit: str = "",
        timestamp: Optional[datetime] = None,
    ) -> SensorReading:
        db_obj = SensorReading(
            sensor_id=sensor_id,
            value=value,
            unit=unit,
            timestamp=as_utc(timestamp or datetime.now(timezone.utc)),
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        logger.debug("Stored reading %s for sensor %s", db_obj.value, sensor_id)
        return db_obj

    def latest_reading(self, db: Session, sensor_id: int) -> Optional[SensorReading]:
        query = (
            select(SensorReading)
            .where(SensorReading.sensor_id == sensor_id)
            .order_by(desc(SensorReading.timestamp), desc(SensorReading.id))
            .limit(1)
        )
        return db.execute(query).scalar_one_or_none()

    def get_window_readings(self, db: Session, since: datetime, limit: int = 5000) -> List[SensorReading]:
        query = (
            select(SensorReading)
            .where(SensorReading.timestamp >= as_utc(since))
            .order_by(asc(SensorReading.timestamp), asc(SensorReading.id))
            .limit(limit)
        )
        return list(db.execute(query).scalars().all())


sensor_crud = CRUDSensor()
