from typing import Optional

from sqlmodel import Session, func, select

from ..models import Notification, NotificationType
from ..utils.clock import utcnow


def notify(session: Session, user_id: int, type: NotificationType, title: str, message: str,
           activity_id: Optional[int] = None) -> Notification:
    """Queue a notification row on the session; the caller commits."""
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        related_activity_id=activity_id,
    )
    session.add(notification)
    return notification


def unread_count(session: Session, user_id: int) -> int:
    return session.exec(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read == False  # noqa: E712
        )
    ).one()


def mark_all_read(session: Session, user_id: int) -> int:
    unread = session.exec(
        select(Notification).where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
    ).all()
    now = utcnow()
    for notification in unread:
        notification.is_read = True
        notification.read_at = now
        session.add(notification)
    session.commit()
    return len(unread)
