"""
Occupancy snapshot repository.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from bedflow.models.capacity import OccupancySnapshot
from bedflow.repositories.base import BaseRepository


class OccupancySnapshotRepository(BaseRepository[OccupancySnapshot]):
    def __init__(self, session: Session):
        super().__init__(OccupancySnapshot, session)

    def find_day(self, tenant_id: str, department_id: str, snapshot_date: date) -> Optional[OccupancySnapshot]:
        return self._run(
            "find day",
            lambda: self.query(tenant_id)
            .filter(
                OccupancySnapshot.department_id == department_id,
                OccupancySnapshot.snapshot_date == snapshot_date,
            )
            .first(),
        )

    def upsert_day(
        self,
        tenant_id: str,
        department_id: str,
        snapshot_date: date,
        occupied_beds: int,
        total_beds: int,
        occupancy_rate: float,
        recorded_at: datetime,
    ) -> OccupancySnapshot:
        """Insert the day's snapshot or overwrite the existing one."""
        snapshot = self.find_day(tenant_id, department_id, snapshot_date)
        if snapshot is None:
            return self.add(
                OccupancySnapshot(
                    tenant_id=tenant_id,
                    department_id=department_id,
                    snapshot_date=snapshot_date,
                    occupied_beds=occupied_beds,
                    total_beds=total_beds,
                    occupancy_rate=occupancy_rate,
                    recorded_at=recorded_at,
                )
            )

        snapshot.occupied_beds = occupied_beds
        snapshot.total_beds = total_beds
        snapshot.occupancy_rate = occupancy_rate
        snapshot.recorded_at = recorded_at
        self.flush()
        return snapshot

    def find_since(self, tenant_id: str, department_id: str, since: date) -> List[OccupancySnapshot]:
        return self._run(
            "find since",
            lambda: self.query(tenant_id)
            .filter(
                OccupancySnapshot.department_id == department_id,
                OccupancySnapshot.snapshot_date >= since,
            )
            .order_by(OccupancySnapshot.snapshot_date.asc())
            .all(),
        )

    def find_between(self, tenant_id: str, start: date, end: date) -> List[OccupancySnapshot]:
        return self._run(
            "find between",
            lambda: self.query(tenant_id)
            .filter(OccupancySnapshot.snapshot_date >= start, OccupancySnapshot.snapshot_date <= end)
            .order_by(OccupancySnapshot.snapshot_date.asc())
            .all(),
        )
