from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from agri_monitor.core.database import Base


class ThresholdSetting(Base):
    __tablename__ = "threshold_settings"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String, unique=True, nullable=False)
    low = Column(Float, nullable=True)
    high = Column(Float, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<ThresholdSetting(category={self.category}, band={self.low}-{self.high})>"
