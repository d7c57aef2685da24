"""
Bed repository: candidate search, optimistic occupancy claim and
status/capability aggregates.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session, joinedload

from bedflow.models.base.enums import BedStatus, CleaningStatus
from bedflow.models.bed import Bed
from bedflow.models.organization import Department
from bedflow.repositories.base import BaseRepository


class BedRepository(BaseRepository[Bed]):
    """
    Repository for Bed entities.

    Handles:
    - Hard-constraint candidate filtering
    - Conditional "claim if still available" updates
    - Per-unit status and isolation aggregates
    """

    def __init__(self, session: Session):
        super().__init__(Bed, session)

    # ============================================================================
    # CANDIDATE SEARCH
    # ============================================================================

    def find_candidates(
        self,
        tenant_id: str,
        isolation_type: Optional[str] = None,
        telemetry_required: bool = False,
        oxygen_required: bool = False,
        specialty_unit: Optional[str] = None,
        bariatric_required: bool = False,
        limit: int = 20,
    ) -> List[Bed]:
        """
        Available beds passing every required hard constraint.

        Args:
            tenant_id: Tenant scope
            isolation_type: Exact isolation type the bed must provide
            telemetry_required: Require telemetry capability
            oxygen_required: Require piped oxygen
            specialty_unit: Required unit type
            bariatric_required: Require bariatric capability
            limit: Candidate cap

        Returns:
            Beds ordered by bed number
        """
        def _find():
            query = (
                self.query(tenant_id)
                .join(Department, Bed.department_id == Department.id)
                .options(joinedload(Bed.department))
                .filter(Bed.status == BedStatus.AVAILABLE.value)
            )
            if isolation_type:
                query = query.filter(
                    Bed.isolation_capable.is_(True),
                    Bed.isolation_type == isolation_type,
                )
            if telemetry_required:
                query = query.filter(Bed.telemetry_capable.is_(True))
            if oxygen_required:
                query = query.filter(Bed.oxygen_available.is_(True))
            if specialty_unit:
                query = query.filter(Department.unit_type == specialty_unit)
            if bariatric_required:
                query = query.filter(Bed.bariatric_capable.is_(True))
            return query.order_by(Bed.bed_number).limit(limit).all()

        return self._run("find candidates", _find)

    # ============================================================================
    # STATE CHANGES
    # ============================================================================

    def claim_if_available(
        self,
        tenant_id: str,
        bed_id: str,
        patient_id: str,
        occupied_at: datetime,
    ) -> int:
        """
        Flip an available bed to occupied in a single conditional UPDATE.

        Returns:
            Number of rows updated (1 on success, 0 if the bed was taken)
        """
        stmt = (
            update(Bed)
            .where(
                Bed.id == bed_id,
                Bed.tenant_id == tenant_id,
                Bed.status == BedStatus.AVAILABLE.value,
            )
            .values(
                status=BedStatus.OCCUPIED.value,
                occupied_at=occupied_at,
                current_patient_id=patient_id,
                updated_at=occupied_at,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = self._run("claim bed", lambda: self.db.execute(stmt))
        return result.rowcount

    # ============================================================================
    # QUERIES
    # ============================================================================

    def find_needing_cleaning(self, tenant_id: str) -> List[Bed]:
        return self._run(
            "find needing cleaning",
            lambda: self.query(tenant_id)
            .options(joinedload(Bed.department))
            .filter(
                Bed.status == BedStatus.CLEANING.value,
                Bed.cleaning_status.in_([CleaningStatus.DIRTY.value, CleaningStatus.IN_PROGRESS.value]),
            )
            .all(),
        )

    def find_for_board(self, tenant_id: str, department_id: Optional[str] = None) -> List[Bed]:
        def _find():
            query = (
                self.query(tenant_id)
                .join(Department, Bed.department_id == Department.id)
                .options(joinedload(Bed.department))
            )
            if department_id:
                query = query.filter(Bed.department_id == department_id)
            return query.order_by(Department.name, Bed.bed_number).all()

        return self._run("find for board", _find)

    def count_by_status(self, tenant_id: str, department_id: str) -> Dict[str, int]:
        """Bed counts per status for one unit."""
        rows = self._run(
            "count by status",
            lambda: self.db.query(Bed.status, func.count(Bed.id))
            .filter(Bed.tenant_id == tenant_id, Bed.department_id == department_id)
            .group_by(Bed.status)
            .all(),
        )
        return {status: count for status, count in rows}

    def count_surge_beds(self, tenant_id: str, department_id: str) -> int:
        """Out-of-service beds that can be opened in a surge (isolation rooms excluded)."""
        return self._run(
            "count surge beds",
            lambda: self.query(tenant_id)
            .filter(
                Bed.department_id == department_id,
                Bed.status == BedStatus.MAINTENANCE.value,
                Bed.isolation_capable.is_(False),
            )
            .count(),
        )

    def isolation_availability(
        self, tenant_id: str, isolation_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Available/occupied/total isolation-capable beds per unit and type."""
        def _aggregate():
            query = (
                self.db.query(
                    Department.id,
                    Department.name,
                    Bed.isolation_type,
                    func.sum(case((Bed.status == BedStatus.AVAILABLE.value, 1), else_=0)),
                    func.sum(case((Bed.status == BedStatus.OCCUPIED.value, 1), else_=0)),
                    func.count(Bed.id),
                )
                .join(Department, Bed.department_id == Department.id)
                .filter(Bed.tenant_id == tenant_id, Bed.isolation_capable.is_(True))
            )
            if isolation_type:
                query = query.filter(Bed.isolation_type == isolation_type)
            return (
                query.group_by(Department.id, Department.name, Bed.isolation_type)
                .order_by(Department.name, Bed.isolation_type)
                .all()
            )

        rows = self._run("isolation availability", _aggregate)
        return [
            {
                "unit_id": unit_id,
                "unit_name": unit_name,
                "isolation_type": iso_type,
                "available_count": int(available or 0),
                "occupied_count": int(occupied or 0),
                "total_count": int(total or 0),
            }
            for unit_id, unit_name, iso_type, available, occupied, total in rows
        ]
