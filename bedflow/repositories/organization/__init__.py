from bedflow.repositories.organization.department_repository import (
    DepartmentRepository,
    StaffRepository,
)

__all__ = ["DepartmentRepository", "StaffRepository"]
