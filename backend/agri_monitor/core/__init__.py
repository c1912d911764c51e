from agri_monitor.core.config import Settings, settings
from agri_monitor.core.database import Base, SessionLocal, engine, get_db, init_db

__all__ = ["Base", "SessionLocal", "Settings", "engine", "get_db", "init_db", "settings"]
