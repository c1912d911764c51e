from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.orm import Session, selectinload

from agri_monitor.models.recommendation import Recommendation


class CRUDRecommendation:
    def create(self, db: Session, obj_in: Dict[str, Any]) -> Recommendation:
        db_obj = Recommendation(**obj_in)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_pending(self, db: Session, limit: int = 5) -> List[Recommendation]:
        query = (
            select(Recommendation)
            .options(selectinload(Recommendation.sensor))
            .where(Recommendation.status == "pending")
            .order_by(desc(Recommendation.created_at), desc(Recommendation.id))
            .limit(limit)
        )
        return list(db.execute(query).scalars().all())

    def update_status(self, db: Session, recommendation_id: int, status: str) -> Optional[Recommendation]:
        recommendation = db.get(Recommendation, recommendation_id)

        if recommendation:
            recommendation.status = status
            db.commit()
            db.refresh(recommendation)

        return recommendation


recommendation_crud = CRUDRecommendation()
