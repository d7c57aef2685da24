from bedflow.models.notification.notification import Notification

__all__ = ["Notification"]
