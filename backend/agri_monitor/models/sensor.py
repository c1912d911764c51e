from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agri_monitor.core.database import Base


class Sensor(Base):
    __tablename__ = "sensors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="other")  # soil_moisture, temperature, water_level, other
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    readings = relationship("SensorReading", back_populates="sensor", cascade="all, delete-orphan")
    recommendations = relationship("Recommendation", back_populates="sensor")

    def __repr__(self):
        return f"<Sensor(id={self.id}, name={self.name}, category={self.category})>"
