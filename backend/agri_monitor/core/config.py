import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    environment: str = os.getenv("ENVIRONMENT", "development")
    debug: bool = os.getenv("DEBUG", "true").lower() == "true"
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))
    cors_origins_raw: str = os.getenv("CORS_ORIGINS", "http://localhost:8501")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./agri_monitor.db")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "logs/application.log")
    trend_window_hours: int = int(os.getenv("TREND_WINDOW_HOURS", "24"))
    display_timezone: str = os.getenv("DISPLAY_TIMEZONE", "")
    ingestion_source: str = os.getenv("INGESTION_SOURCE", "database")
    remote_source_url: str = os.getenv("REMOTE_SOURCE_URL", "http://localhost:8000/api")
    remote_source_timeout: int = int(os.getenv("REMOTE_SOURCE_TIMEOUT", "10"))
    push_webhook_url: str = os.getenv("PUSH_WEBHOOK_URL", "")
    push_timeout: int = int(os.getenv("PUSH_TIMEOUT", "5"))
    push_permission: str = os.getenv("PUSH_PERMISSION", "default")
    fallback_latitude: float = float(os.getenv("FALLBACK_LATITUDE", "29.375055"))
    fallback_longitude: float = float(os.getenv("FALLBACK_LONGITUDE", "79.531300"))

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.cors_origins_raw.split(",") if item.strip()]

    @property
    def fallback_coordinates(self) -> tuple[float, float]:
        return self.fallback_latitude, self.fallback_longitude


settings = Settings()
