from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship

from ..utils.clock import utcnow

if TYPE_CHECKING:
    from .user import User
    from .activity import Activity


class NotificationType(str, Enum):
    APPLICATION_ACCEPTED = "APPLICATION_ACCEPTED"
    APPLICATION_REJECTED = "APPLICATION_REJECTED"
    APPLICATION_WAITLISTED = "APPLICATION_WAITLISTED"
    HOURS_APPROVED = "HOURS_APPROVED"
    HOURS_REJECTED = "HOURS_REJECTED"
    HOURS_INFO_REQUESTED = "HOURS_INFO_REQUESTED"
    SESSION_CANCELLED = "SESSION_CANCELLED"
    GENERAL = "GENERAL"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    type: NotificationType = Field(default=NotificationType.GENERAL, index=True)
    title: str
    message: str
    related_activity_id: Optional[int] = Field(default=None, foreign_key="activities.id")
    is_read: bool = Field(default=False, index=True)
    read_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)

    user: "User" = Relationship(back_populates="notifications")
    activity: Optional["Activity"] = Relationship()
