from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agri_monitor.core.database import Base


class Recommendation(Base):
    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True)
    sensor_id = Column(Integer, ForeignKey("sensors.id"), nullable=True)
    recommendation_type = Column(String, nullable=False)  # irrigation, fertilization, pest_control, harvest
    message = Column(Text, nullable=False)
    confidence_score = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="pending")  # pending, applied, dismissed
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    sensor = relationship("Sensor", back_populates="recommendations")

    @property
    def sensor_name(self) -> str | None:
        return self.sensor.name if self.sensor else None

    def __repr__(self):
        return f"<Recommendation(type={self.recommendation_type}, status={self.status})>"
