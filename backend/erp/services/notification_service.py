import logging
from typing import Optional

from sqlalchemy.orm import Session

from erp.config import settings
from erp.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Best-effort activity feed, written after the business transaction commits"""

    def notify(
        self,
        db: Session,
        event_type: str,
        title: str,
        message: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> Optional[Notification]:
        if not settings.notifications_enabled:
            return None
        try:
            notification = Notification(
                event_type=event_type,
                title=title,
                message=message,
                reference=reference,
            )
            db.add(notification)
            db.commit()
            return notification
        except Exception as e:
            # The committed business operation stands regardless
            db.rollback()
            logger.warning(f"Failed to record notification '{event_type}' for {reference}: {e}")
            return None


notification_service = NotificationService()
