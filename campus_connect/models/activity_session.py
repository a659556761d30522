from typing import List, Optional, TYPE_CHECKING
from datetime import date, datetime, time
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship

if TYPE_CHECKING:
    from .activity import Activity
    from .attendance import Attendance


class SessionStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ActivitySession(SQLModel, table=True):
    """A scheduled meeting of an activity; holds the rotating QR check-in payload."""

    __tablename__ = "sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    activity_id: int = Field(foreign_key="activities.id", index=True)
    start_time: time
    end_time: time
    location: Optional[str] = None
    status: SessionStatus = Field(default=SessionStatus.SCHEDULED)
    qr_code_data: Optional[str] = None
    qr_expires_at: Optional[datetime] = None
    date: date
    updated_at: Optional[datetime] = None

    activity: "Activity" = Relationship(back_populates="sessions")
    attendance: List["Attendance"] = Relationship(back_populates="session")

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def duration_hours(self) -> float:
        delta = datetime.combine(self.date, self.end_time) - self.starts_at
        return round(max(delta.total_seconds(), 0) / 3600, 2)
