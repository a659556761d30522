from typing import List, Optional, TYPE_CHECKING
from datetime import date, datetime, time
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import CheckConstraint

from ..utils.clock import utcnow

if TYPE_CHECKING:
    from .user import User
    from .enrollment import Enrollment
    from .activity_session import ActivitySession


class ActivityStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Status only moves forward; cancellation is allowed from any non-terminal state.
ACTIVITY_TRANSITIONS = {
    ActivityStatus.OPEN: {ActivityStatus.IN_PROGRESS, ActivityStatus.CANCELLED},
    ActivityStatus.IN_PROGRESS: {ActivityStatus.COMPLETED, ActivityStatus.CANCELLED},
    ActivityStatus.COMPLETED: set(),
    ActivityStatus.CANCELLED: set(),
}


class Activity(SQLModel, table=True):
    __tablename__ = "activities"
    __table_args__ = (
        CheckConstraint("max_participants BETWEEN 1 AND 500", name="ck_activity_capacity"),
        CheckConstraint(
            "current_participants >= 0 AND current_participants <= max_participants",
            name="ck_activity_participants",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    description: str = ""
    category: Optional[str] = Field(default=None, index=True)
    location: Optional[str] = None
    eligibility_criteria: Optional[str] = None
    status: ActivityStatus = Field(default=ActivityStatus.OPEN, index=True)
    created_by: int = Field(foreign_key="users.id", index=True)
    max_participants: int
    current_participants: int = 0
    start_time: time
    end_time: time
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    date: date

    creator: "User" = Relationship()
    enrollments: List["Enrollment"] = Relationship(back_populates="activity")
    sessions: List["ActivitySession"] = Relationship(back_populates="activity")

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    def can_transition_to(self, new_status: ActivityStatus) -> bool:
        return new_status in ACTIVITY_TRANSITIONS[ActivityStatus(self.status)]
