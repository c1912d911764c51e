import logging
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agri_monitor.api import router
from agri_monitor.core import SessionLocal, init_db, settings
from agri_monitor.services import DashboardSession, EventBus, build_push_sink, build_source
from agri_monitor.utils.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def create_dashboard_session() -> DashboardSession:
    session = DashboardSession(
        build_source(settings, SessionLocal),
        bus=EventBus(),
        push_sink=build_push_sink(settings),
        push_permission=settings.push_permission,
        tz=ZoneInfo(settings.display_timezone) if settings.display_timezone else None,
        window_hours=settings.trend_window_hours,
        fallback=settings.fallback_coordinates,
    )
    session.start()
    return session


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables and open the dashboard session
    init_db()
    app.state.dashboard_session = create_dashboard_session()
    logger.info("Dashboard session started (source=%s)", settings.ingestion_source)

    yield

    # Shutdown: drop event subscriptions
    app.state.dashboard_session.close()
    logger.info("Dashboard session closed")


app = FastAPI(
    title="Agri Monitor API",
    version="0.1.0",
    description="Sensor metrics, trend series and threshold alerts for the farm monitoring dashboard.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Agri monitor backend is running", "docs": "/docs"}
