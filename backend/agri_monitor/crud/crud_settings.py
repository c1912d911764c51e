from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from agri_monitor.models.threshold_setting import ThresholdSetting
from agri_monitor.schemas import ThresholdBand


class CRUDSettings:
    def get_row(self, db: Session, category: str) -> Optional[ThresholdSetting]:
        result = db.execute(select(ThresholdSetting).where(ThresholdSetting.category == category))
        return result.scalar_one_or_none()

    def get_overrides(self, db: Session) -> Dict[str, ThresholdBand]:
        rows = db.execute(select(ThresholdSetting)).scalars().all()
        return {row.category: ThresholdBand(low=row.low, high=row.high) for row in rows}

    def update_band(self, db: Session, category: str, band: ThresholdBand) -> ThresholdSetting:
        row = self.get_row(db, category)
        if row is None:
            row = ThresholdSetting(category=category)
            db.add(row)

        row.low = band.low
        row.high = band.high
        db.commit()
        db.refresh(row)
        return row


settings_crud = CRUDSettings()
