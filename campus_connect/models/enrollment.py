from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Index, text

from .attendance import AttendanceStatus
from ..utils.clock import utcnow

if TYPE_CHECKING:
    from .user import User
    from .activity import Activity
    from .hours import HoursRequest


class EnrollmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    WAITLISTED = "WAITLISTED"


ENROLLMENT_TRANSITIONS = {
    EnrollmentStatus.PENDING: {
        EnrollmentStatus.CONFIRMED,
        EnrollmentStatus.CANCELLED,
        EnrollmentStatus.WAITLISTED,
    },
    # A waitlisted applicant is promoted when a seat frees up
    EnrollmentStatus.WAITLISTED: {EnrollmentStatus.CONFIRMED},
    # Student withdrawal
    EnrollmentStatus.CONFIRMED: {EnrollmentStatus.CANCELLED},
    EnrollmentStatus.CANCELLED: set(),
}


class Enrollment(SQLModel, table=True):
    __tablename__ = "enrollments"
    __table_args__ = (
        Index(
            "uq_enrollment_user_activity_live",
            "user_id",
            "activity_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    activity_id: int = Field(foreign_key="activities.id", index=True)
    status: EnrollmentStatus = Field(default=EnrollmentStatus.PENDING, index=True)
    motivation: Optional[str] = None
    availability: Optional[str] = None
    experience: Optional[str] = None
    rejection_reason: Optional[str] = None
    custom_message: Optional[str] = None
    professor_notes: Optional[str] = None
    reviewed_by: Optional[int] = Field(default=None, foreign_key="users.id")
    reviewed_at: Optional[datetime] = None
    attendance_status: AttendanceStatus = Field(default=AttendanceStatus.PENDING)
    enrolled_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    user: "User" = Relationship(
        back_populates="enrollments", sa_relationship_kwargs={"foreign_keys": "[Enrollment.user_id]"}
    )
    activity: "Activity" = Relationship(back_populates="enrollments")
    hours_requests: List["HoursRequest"] = Relationship(back_populates="enrollment")

    def can_transition_to(self, new_status: EnrollmentStatus) -> bool:
        return new_status in ENROLLMENT_TRANSITIONS[EnrollmentStatus(self.status)]
