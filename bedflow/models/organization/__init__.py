from bedflow.models.organization.department import Department, StaffMember

__all__ = ["Department", "StaffMember"]
