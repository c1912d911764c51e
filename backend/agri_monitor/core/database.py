from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from agri_monitor.core.config import settings


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url), echo=False)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    from agri_monitor import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
