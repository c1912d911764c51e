from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

RecommendationStatus = Literal["pending", "applied", "dismissed"]


class RecommendationIn(BaseModel):
    sensor_id: int | None = None
    recommendation_type: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    confidence_score: float = Field(..., ge=0.0, le=1.0)


class RecommendationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sensor_id: int | None
    sensor_name: str | None = None
    recommendation_type: str
    message: str
    confidence_score: float
    status: RecommendationStatus
    created_at: datetime | None

    @computed_field  # type: ignore[misc]
    @property
    def confidence_level(self) -> str:
        if self.confidence_score >= 0.8:
            return "high"
        if self.confidence_score >= 0.6:
            return "medium"
        return "low"


class RecommendationListResponse(BaseModel):
    items: list[RecommendationOut]
    count: int
