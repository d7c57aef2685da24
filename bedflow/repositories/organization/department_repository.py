"""
Department (unit) and staff repositories.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from bedflow.core.exceptions import NotFoundError
from bedflow.models.base.enums import StaffStatus
from bedflow.models.organization import Department, StaffMember
from bedflow.repositories.base import BaseRepository


class DepartmentRepository(BaseRepository[Department]):
    def __init__(self, session: Session):
        super().__init__(Department, session)

    def find_by_name(self, tenant_id: str, name: str) -> Optional[Department]:
        return self._run(
            "find by name",
            lambda: self.query(tenant_id).filter(Department.name == name).first(),
        )

    def get_by_name(self, tenant_id: str, name: str) -> Department:
        department = self.find_by_name(tenant_id, name)
        if department is None:
            raise NotFoundError("Unit", name)
        return department

    def list_all(self, tenant_id: str) -> List[Department]:
        return self.find_by_criteria(tenant_id, order_by=[Department.name])


class StaffRepository(BaseRepository[StaffMember]):
    def __init__(self, session: Session):
        super().__init__(StaffMember, session)

    def active_in_department(
        self, tenant_id: str, department_id: str, role: Optional[str] = None
    ) -> List[StaffMember]:
        criteria = {"department_id": department_id, "status": StaffStatus.ACTIVE.value}
        if role:
            criteria["role"] = role
        return self.find_by_criteria(tenant_id, criteria, order_by=[StaffMember.last_name])

    def active_with_role(self, tenant_id: str, role: str) -> List[StaffMember]:
        return self.find_by_criteria(
            tenant_id,
            {"role": role, "status": StaffStatus.ACTIVE.value},
            order_by=[StaffMember.last_name],
        )

    def count_active(self, tenant_id: str, department_id: str) -> int:
        return self.count(tenant_id, {"department_id": department_id, "status": StaffStatus.ACTIVE.value})
