"""
Read access to clinical inputs: diagnoses, labs, vitals, prescriptions
and discharge planning records.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from bedflow.models.clinical import (
    Appointment,
    Diagnosis,
    DischargePlanningTask,
    LabOrder,
    LabResult,
    MedicationReconciliation,
    PatientEducation,
    Prescription,
    VitalSign,
)
from bedflow.repositories.base import BaseRepository


class ClinicalRecordRepository(BaseRepository[Diagnosis]):
    """
    Repository rooted on Diagnosis that also reads the related clinical
    tables for a patient.
    """

    def __init__(self, session: Session):
        super().__init__(Diagnosis, session)

    def recent_diagnoses(self, tenant_id: str, patient_id: str, limit: int = 10) -> List[Diagnosis]:
        return self.find_by_criteria(
            tenant_id,
            {"patient_id": patient_id},
            order_by=[Diagnosis.recorded_at.desc()],
            limit=limit,
        )

    def positive_labs_since(self, tenant_id: str, patient_id: str, since: datetime) -> List[LabResult]:
        return self._run(
            "positive labs",
            lambda: self.db.query(LabResult)
            .filter(
                LabResult.tenant_id == tenant_id,
                LabResult.patient_id == patient_id,
                LabResult.result_status == "positive",
                LabResult.resulted_at > since,
            )
            .order_by(LabResult.resulted_at.desc())
            .all(),
        )

    def vitals_since(self, tenant_id: str, patient_id: str, since: datetime, limit: int = 10) -> List[VitalSign]:
        return self._run(
            "vitals since",
            lambda: self.db.query(VitalSign)
            .filter(
                VitalSign.tenant_id == tenant_id,
                VitalSign.patient_id == patient_id,
                VitalSign.recorded_at >= since,
            )
            .order_by(VitalSign.recorded_at.desc())
            .limit(limit)
            .all(),
        )

    def count_pending_lab_orders(self, tenant_id: str, patient_id: str) -> int:
        return self._run(
            "pending lab orders",
            lambda: self.db.query(LabOrder)
            .filter(
                LabOrder.tenant_id == tenant_id,
                LabOrder.patient_id == patient_id,
                LabOrder.status == "pending",
            )
            .count(),
        )

    def count_monitored_prescriptions(self, tenant_id: str, patient_id: str) -> int:
        return self._run(
            "monitored prescriptions",
            lambda: self.db.query(Prescription)
            .filter(
                Prescription.tenant_id == tenant_id,
                Prescription.patient_id == patient_id,
                Prescription.status == "active",
                Prescription.requires_monitoring.is_(True),
            )
            .count(),
        )


class DischargePlanningRepository(BaseRepository[DischargePlanningTask]):
    def __init__(self, session: Session):
        super().__init__(DischargePlanningTask, session)

    def planning_status(self, tenant_id: str, admission_id: str, planning_type: str) -> Optional[str]:
        task = self._run(
            "planning status",
            lambda: self.query(tenant_id)
            .filter(
                DischargePlanningTask.admission_id == admission_id,
                DischargePlanningTask.planning_type == planning_type,
            )
            .order_by(DischargePlanningTask.created_at.desc())
            .first(),
        )
        return task.status if task else None

    def latest_medication_reconciliation(
        self, tenant_id: str, admission_id: str
    ) -> Optional[MedicationReconciliation]:
        return self._run(
            "latest med rec",
            lambda: self.db.query(MedicationReconciliation)
            .filter(
                MedicationReconciliation.tenant_id == tenant_id,
                MedicationReconciliation.admission_id == admission_id,
            )
            .order_by(MedicationReconciliation.created_at.desc())
            .first(),
        )

    def count_completed_education(self, tenant_id: str, admission_id: str, education_types) -> int:
        return self._run(
            "completed education",
            lambda: self.db.query(PatientEducation)
            .filter(
                PatientEducation.tenant_id == tenant_id,
                PatientEducation.admission_id == admission_id,
                PatientEducation.education_type.in_(list(education_types)),
                PatientEducation.completed.is_(True),
            )
            .count(),
        )

    def count_future_follow_ups(self, tenant_id: str, patient_id: str, now: datetime) -> int:
        return self._run(
            "future follow ups",
            lambda: self.db.query(Appointment)
            .filter(
                Appointment.tenant_id == tenant_id,
                Appointment.patient_id == patient_id,
                Appointment.appointment_type == "follow_up",
                Appointment.appointment_date > now,
            )
            .count(),
        )
