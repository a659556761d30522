from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from ..db import get_session
from ..dependencies import get_current_user
from ..models import Notification, NotificationType, User
from ..schemas.notification import NotificationRead
from ..services.notifications import mark_all_read, unread_count
from ..utils.clock import utcnow

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _get_own(session: Session, notification_id: int, user: User) -> Notification:
    notification = session.get(Notification, notification_id)
    # Other users' notifications are reported as missing.
    if notification is None or notification.user_id != user.id:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.get("")
def list_notifications(
    unread_only: bool = False,
    type: Optional[NotificationType] = None,
    limit: int = 20,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    limit = max(1, min(limit, 100))
    offset = max(0, offset)
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712
    if type:
        query = query.where(Notification.type == type)

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    notifications = session.exec(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit)
    ).all()
    return {
        "notifications": [NotificationRead.model_validate(n) for n in notifications],
        "total": total,
        "unread_count": unread_count(session, current_user.id),
        "limit": limit,
        "offset": offset,
    }


@router.patch("/read-all")
def read_all(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    updated = mark_all_read(session, current_user.id)
    return {"message": "All notifications marked as read", "updated_count": updated}


@router.get("/{notification_id}", response_model=NotificationRead)
def get_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return _get_own(session, notification_id, current_user)


@router.patch("/{notification_id}/read")
def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    notification = _get_own(session, notification_id, current_user)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        session.add(notification)
        session.commit()
        session.refresh(notification)
    return {"message": "Notification marked as read", "notification": NotificationRead.model_validate(notification)}


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    notification = _get_own(session, notification_id, current_user)
    session.delete(notification)
    session.commit()
    return {"message": "Notification deleted"}
