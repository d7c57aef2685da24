from bedflow.repositories.audit.audit_repository import AuditLogRepository

__all__ = ["AuditLogRepository"]
