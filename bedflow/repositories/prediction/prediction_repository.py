"""
Discharge readiness and transfer priority log repositories.
"""

from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from bedflow.models.base.enums import AdmissionStatus
from bedflow.models.clinical import Admission
from bedflow.models.prediction import DischargeReadinessPrediction, TransferPriority
from bedflow.repositories.base import CurrentViewRepository


class DischargePredictionRepository(CurrentViewRepository[DischargeReadinessPrediction]):
    def __init__(self, session: Session):
        super().__init__(DischargeReadinessPrediction, session)

    def _current_active(self, tenant_id: str):
        return (
            self.query(tenant_id)
            .join(Admission, DischargeReadinessPrediction.admission_id == Admission.id)
            .filter(
                DischargeReadinessPrediction.is_current.is_(True),
                Admission.status == AdmissionStatus.ACTIVE.value,
            )
        )

    def current_ready(self, tenant_id: str, min_score: float) -> List[DischargeReadinessPrediction]:
        """Current predictions for active admissions at or above ``min_score``."""
        return self._run(
            "current ready",
            lambda: self._current_active(tenant_id)
            .filter(DischargeReadinessPrediction.overall_readiness_score >= min_score)
            .order_by(
                DischargeReadinessPrediction.overall_readiness_score.desc(),
                DischargeReadinessPrediction.predicted_discharge_date.asc(),
            )
            .all(),
        )

    def current_for_department(
        self, tenant_id: str, department_id: str, min_score: float = 0.0
    ) -> List[DischargeReadinessPrediction]:
        return self._run(
            "current for department",
            lambda: self._current_active(tenant_id)
            .filter(
                Admission.department_id == department_id,
                DischargeReadinessPrediction.overall_readiness_score >= min_score,
            )
            .order_by(DischargeReadinessPrediction.predicted_discharge_date.asc())
            .all(),
        )

    def current_for_admissions(self, tenant_id: str, admission_ids: List[str]) -> List[DischargeReadinessPrediction]:
        if not admission_ids:
            return []
        return self._run(
            "current for admissions",
            lambda: self.query(tenant_id)
            .filter(
                DischargeReadinessPrediction.admission_id.in_(admission_ids),
                DischargeReadinessPrediction.is_current.is_(True),
            )
            .all(),
        )


class TransferPriorityRepository(CurrentViewRepository[TransferPriority]):
    def __init__(self, session: Session):
        super().__init__(TransferPriority, session)

    def computed_between(self, tenant_id: str, start: datetime, end: datetime) -> List[TransferPriority]:
        return self._run(
            "computed between",
            lambda: self.query(tenant_id)
            .filter(TransferPriority.computed_at >= start, TransferPriority.computed_at <= end)
            .all(),
        )

    def current_pending(self, tenant_id: str) -> List[TransferPriority]:
        """Current priorities for admissions still waiting to leave the ED."""
        return self._run(
            "current pending",
            lambda: self.query(tenant_id)
            .join(Admission, TransferPriority.admission_id == Admission.id)
            .filter(
                TransferPriority.is_current.is_(True),
                Admission.status.in_(
                    [AdmissionStatus.AWAITING_TRANSFER.value, AdmissionStatus.TRANSFER_IN_PROGRESS.value]
                ),
            )
            .order_by(TransferPriority.priority_score.desc(), TransferPriority.computed_at.asc())
            .all(),
        )
