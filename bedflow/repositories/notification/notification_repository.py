"""
Notification outbox repository.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from bedflow.models.notification import Notification
from bedflow.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, session: Session):
        super().__init__(Notification, session)

    def enqueue(
        self,
        tenant_id: str,
        recipient_id: str,
        notification_type: str,
        title: str,
        message: str,
        priority: str,
        created_at: datetime,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        return self.add(
            Notification(
                tenant_id=tenant_id,
                recipient_id=recipient_id,
                notification_type=notification_type,
                title=title,
                message=message,
                priority=priority,
                data=data,
                created_at=created_at,
            )
        )

    def for_recipient(self, tenant_id: str, recipient_id: str, unread_only: bool = False) -> List[Notification]:
        criteria: Dict[str, Any] = {"recipient_id": recipient_id}
        if unread_only:
            criteria["is_read"] = False
        return self.find_by_criteria(tenant_id, criteria, order_by=[Notification.created_at.desc()])

    def by_type(self, tenant_id: str, notification_type: str) -> List[Notification]:
        return self.find_by_criteria(
            tenant_id, {"notification_type": notification_type}, order_by=[Notification.created_at.desc()]
        )
