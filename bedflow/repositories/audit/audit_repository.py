"""
Audit log repository.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from bedflow.models.audit import AuditLog
from bedflow.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    def __init__(self, session: Session):
        super().__init__(AuditLog, session)

    def log(
        self,
        tenant_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        created_at: datetime,
        performed_by: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Stage an audit entry in the caller's transaction.

        Args:
            tenant_id: Tenant scope
            action: Action name, e.g. ``bed_assigned``
            entity_type: Affected entity type
            entity_id: Affected entity id
            created_at: Event time from the service clock
            performed_by: Acting user id
            details: Free-form JSON payload
        """
        return self.add(
            AuditLog(
                tenant_id=tenant_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                performed_by=performed_by,
                details=details or {},
                created_at=created_at,
            )
        )

    def for_entity(self, tenant_id: str, entity_type: str, entity_id: str) -> List[AuditLog]:
        return self.find_by_criteria(
            tenant_id,
            {"entity_type": entity_type, "entity_id": entity_id},
            order_by=[AuditLog.created_at.desc()],
        )

    def by_action(self, tenant_id: str, action: str, limit: int = 100) -> List[AuditLog]:
        return self.find_by_criteria(
            tenant_id, {"action": action}, order_by=[AuditLog.created_at.desc()], limit=limit
        )
