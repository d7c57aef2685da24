"""
Shared fixtures: an in-memory SQLite database, a frozen clock and small
builders for the rows the engines read.
"""

from datetime import datetime, timedelta

import pytest

from bedflow.config.settings import Settings
from bedflow.db.session import build_engine, build_session_factory, init_db
from bedflow.models.base.enums import AdmissionStatus, StaffRole
from bedflow.models.bed import Bed
from bedflow.models.clinical import (
    Admission,
    Appointment,
    DischargePlanningTask,
    MedicationReconciliation,
    Patient,
    PatientEducation,
)
from bedflow.models.organization import Department, StaffMember
from bedflow.services import ServiceFactory
from bedflow.services.base.feature_flag_cache import InMemoryFeatureFlagCache

TENANT = "general-hospital"
OTHER_TENANT = "county-hospital"

# A Wednesday, inside business hours
NOW = datetime(2024, 3, 6, 10, 0)


class FrozenClock:
    """Naive-UTC clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeTimer:
    """Monotonic timer stand-in for cache expiry tests."""

    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class Builder:
    """Adds and commits rows for one tenant."""

    def __init__(self, session, tenant_id: str = TENANT, clock: FrozenClock = None):
        self.session = session
        self.tenant_id = tenant_id
        self.clock = clock or FrozenClock()
        self._mrn = 0

    def _save(self, row):
        self.session.add(row)
        self.session.commit()
        return row

    def department(self, name: str = "Medical", unit_type: str = None) -> Department:
        return self._save(Department(tenant_id=self.tenant_id, name=name, unit_type=unit_type or name))

    def bed(self, department: Department, bed_number: str, **fields) -> Bed:
        fields.setdefault("room_number", bed_number[:-1] or bed_number)
        return self._save(
            Bed(tenant_id=self.tenant_id, department_id=department.id, bed_number=bed_number, **fields)
        )

    def patient(self, **fields) -> Patient:
        self._mrn += 1
        fields.setdefault("medical_record_number", f"MRN{self._mrn:05d}")
        fields.setdefault("first_name", "Pat")
        fields.setdefault("last_name", f"Doe{self._mrn}")
        return self._save(Patient(tenant_id=self.tenant_id, **fields))

    def admission(self, patient: Patient, **fields) -> Admission:
        fields.setdefault("admission_date", self.clock() - timedelta(hours=2))
        fields.setdefault("status", AdmissionStatus.ACTIVE.value)
        return self._save(Admission(tenant_id=self.tenant_id, patient_id=patient.id, **fields))

    def ed_boarder(self, unit: str, acuity_level: int = 3, waited_hours: float = 1.0, **fields) -> Admission:
        """An ED patient waiting for a bed on ``unit``."""
        fields.setdefault("status", AdmissionStatus.AWAITING_TRANSFER.value)
        patient = self.patient()
        return self.admission(
            patient,
            location="ED",
            required_unit=unit,
            acuity_level=acuity_level,
            admission_date=self.clock() - timedelta(hours=waited_hours),
            **fields,
        )

    def discharge_plan(self, admission: Admission, destination: str = "home") -> Admission:
        """Arrange everything social readiness checks, so only medical factors remain."""
        patient = admission.patient
        patient.discharge_destination = destination
        self._save(patient)
        self.add(DischargePlanningTask(admission_id=admission.id, planning_type="transportation", status="arranged"))
        self.add(MedicationReconciliation(admission_id=admission.id, completed=True, reconciled_at=self.clock()))
        for education_type in ("discharge_instructions", "medication_education"):
            self.add(PatientEducation(admission_id=admission.id, education_type=education_type, completed=True))
        self.add(
            Appointment(
                patient_id=patient.id,
                appointment_type="follow_up",
                appointment_date=self.clock() + timedelta(days=7),
            )
        )
        return admission

    def staff(self, department: Department, role: StaffRole = StaffRole.NURSE, **fields) -> StaffMember:
        fields.setdefault("first_name", "Sam")
        fields.setdefault("last_name", role.value.title())
        return self._save(
            StaffMember(tenant_id=self.tenant_id, department_id=department.id, role=role.value, **fields)
        )

    def add(self, row):
        row.tenant_id = self.tenant_id
        return self._save(row)


@pytest.fixture
def settings():
    """Defaults only; a developer's .env must not change test outcomes."""
    return Settings(_env_file=None)


@pytest.fixture
def engine():
    engine = build_engine(url="sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = build_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def flag_cache(timer):
    return InMemoryFeatureFlagCache(ttl_seconds=300, timer=timer)


@pytest.fixture
def factory(db_session, clock, settings, flag_cache):
    return ServiceFactory(db_session, clock=clock, settings=settings, cache=flag_cache)


@pytest.fixture
def build(db_session, clock):
    return Builder(db_session, TENANT, clock)
