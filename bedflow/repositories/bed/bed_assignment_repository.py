"""
Bed assignment ledger and turnover metric repositories.
"""

from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from bedflow.models.bed import BedAssignment, BedTurnoverMetric
from bedflow.repositories.base import BaseRepository


class BedAssignmentRepository(BaseRepository[BedAssignment]):
    """Insert-only access to the assignment ledger."""

    def __init__(self, session: Session):
        super().__init__(BedAssignment, session)


class BedTurnoverMetricRepository(BaseRepository[BedTurnoverMetric]):
    def __init__(self, session: Session):
        super().__init__(BedTurnoverMetric, session)

    def completed_between(self, tenant_id: str, start: datetime, end: datetime) -> List[BedTurnoverMetric]:
        return self._run(
            "completed between",
            lambda: self.query(tenant_id)
            .filter(BedTurnoverMetric.completed_at >= start, BedTurnoverMetric.completed_at <= end)
            .order_by(BedTurnoverMetric.completed_at)
            .all(),
        )
