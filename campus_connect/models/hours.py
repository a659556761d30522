from typing import List, Optional, TYPE_CHECKING
from datetime import date, datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import CheckConstraint, Column, JSON

from ..utils.clock import utcnow

if TYPE_CHECKING:
    from .enrollment import Enrollment
    from .activity import Activity


class HoursRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class HoursRequest(SQLModel, table=True):
    __tablename__ = "hours_requests"
    __table_args__ = (
        CheckConstraint("hours >= 0.5 AND hours <= 24", name="ck_hours_range"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    enrollment_id: int = Field(foreign_key="enrollments.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    activity_id: int = Field(foreign_key="activities.id", index=True)
    hours: float
    description: str
    evidence_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    status: HoursRequestStatus = Field(default=HoursRequestStatus.PENDING, index=True)
    professor_notes: Optional[str] = None
    # Set only when the request is approved
    approved_by: Optional[int] = Field(default=None, foreign_key="users.id")
    approved_at: Optional[datetime] = None
    # Set for both outcomes
    reviewed_by: Optional[int] = Field(default=None, foreign_key="users.id")
    reviewed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    date: date

    enrollment: "Enrollment" = Relationship(back_populates="hours_requests")
    activity: "Activity" = Relationship()

    @property
    def is_pending(self) -> bool:
        return self.status == HoursRequestStatus.PENDING
