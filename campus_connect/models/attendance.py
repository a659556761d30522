from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint

from ..utils.clock import utcnow

if TYPE_CHECKING:
    from .activity_session import ActivitySession


class AttendanceStatus(str, Enum):
    PENDING = "PENDING"
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"


class CheckInMethod(str, Enum):
    QR_CODE = "QR_CODE"
    MANUAL = "MANUAL"


class Attendance(SQLModel, table=True):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("session_id", "enrollment_id", name="uq_attendance_session_enrollment"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="sessions.id", index=True)
    enrollment_id: int = Field(foreign_key="enrollments.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    status: AttendanceStatus = Field(default=AttendanceStatus.PRESENT)
    check_in_method: CheckInMethod = Field(default=CheckInMethod.QR_CODE)
    hours_credited: float = 0
    checked_in_at: datetime = Field(default_factory=utcnow)

    session: "ActivitySession" = Relationship(back_populates="attendance")
