"""
Patient and admission repositories.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from bedflow.models.base.enums import AdmissionStatus
from bedflow.models.clinical import ED_LOCATION, Admission, Patient
from bedflow.repositories.base import BaseRepository


class PatientRepository(BaseRepository[Patient]):
    def __init__(self, session: Session):
        super().__init__(Patient, session)


class AdmissionRepository(BaseRepository[Admission]):
    """
    Admission queries used by the discharge, transfer and capacity engines.
    """

    def __init__(self, session: Session):
        super().__init__(Admission, session)

    def get_for_patient(self, tenant_id: str, admission_id: str, patient_id: str) -> Optional[Admission]:
        return self._run(
            "get for patient",
            lambda: self.query(tenant_id)
            .options(joinedload(Admission.patient))
            .filter(Admission.id == admission_id, Admission.patient_id == patient_id)
            .first(),
        )

    def ed_awaiting_transfer(self, tenant_id: str, unit: Optional[str] = None) -> List[Admission]:
        def _find():
            query = (
                self.query(tenant_id)
                .options(joinedload(Admission.patient))
                .filter(
                    Admission.location == ED_LOCATION,
                    Admission.status == AdmissionStatus.AWAITING_TRANSFER.value,
                )
            )
            if unit:
                query = query.filter(Admission.required_unit == unit)
            return query.order_by(Admission.acuity_level, Admission.admission_date).all()

        return self._run("ed awaiting transfer", _find)

    def discharged_between(self, tenant_id: str, start: datetime, end: datetime) -> List[Admission]:
        return self._run(
            "discharged between",
            lambda: self.query(tenant_id)
            .filter(
                Admission.status == AdmissionStatus.DISCHARGED.value,
                Admission.discharge_date >= start,
                Admission.discharge_date <= end,
            )
            .all(),
        )

    def transfers_completed_between(self, tenant_id: str, start: datetime, end: datetime) -> List[Admission]:
        return self._run(
            "transfers completed between",
            lambda: self.query(tenant_id)
            .filter(
                Admission.transfer_completed_at.isnot(None),
                Admission.transfer_completed_at >= start,
                Admission.transfer_completed_at <= end,
                Admission.location != ED_LOCATION,
            )
            .all(),
        )

    def count_admitted_since(self, tenant_id: str, department_id: str, since: datetime) -> int:
        return self._run(
            "count admitted since",
            lambda: self.query(tenant_id)
            .filter(Admission.department_id == department_id, Admission.admission_date >= since)
            .count(),
        )
