"""Shared pytest fixtures for testing."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")

import shutil
import tempfile
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from agri_monitor.api import get_dashboard_session
from agri_monitor.core.database import get_db, init_db
from agri_monitor.main import app
from agri_monitor.schemas import Sensor, SensorReading, ThresholdBand
from agri_monitor.services import DashboardSession, DatabaseSource, EventBus
from agri_monitor.services.thresholds import DEFAULT_THRESHOLDS


@pytest.fixture
def make_sensor():
    """Build a sensor whose latest reading is ``value`` (or none)."""

    def _make(
        id: int = 1,
        name: str = "Field A",
        category: str = "soil_moisture",
        value: float | None = None,
        unit: str = "%",
        timestamp: datetime | None = None,
        thresholds: ThresholdBand | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Sensor:
        reading = None
        if value is not None:
            reading = SensorReading(
                sensor_id=id,
                value=value,
                unit=unit,
                timestamp=timestamp or datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc),
            )
        return Sensor(
            id=id,
            name=name,
            category=category,
            latitude=latitude,
            longitude=longitude,
            latest_reading=reading,
            thresholds=thresholds or DEFAULT_THRESHOLDS[category],
        )

    return _make


@pytest.fixture(scope='function')
def session_factory():
    """Create a temporary database for testing."""
    temp_dir = tempfile.mkdtemp()
    db_path = os.path.join(temp_dir, 'test_agri_monitor.db')

    test_engine = create_engine(f'sqlite:///{db_path}', connect_args={'check_same_thread': False}, echo=False)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    init_db(bind=test_engine)

    yield TestSessionLocal

    test_engine.dispose()
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def dashboard_session(session_factory):
    session = DashboardSession(DatabaseSource(session_factory), bus=EventBus())
    session.start()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, dashboard_session):
    """Create FastAPI test client backed by the temporary database."""

    def test_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = test_get_db
    app.dependency_overrides[get_dashboard_session] = lambda: dashboard_session
    yield TestClient(app)
    app.dependency_overrides.clear()
