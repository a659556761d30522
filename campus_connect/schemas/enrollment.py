from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import AttendanceStatus, EnrollmentStatus


class EnrollForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    motivation: str = Field(min_length=50, max_length=1000)
    availability: str = Field(min_length=10, max_length=500)
    experience: Optional[str] = Field(default=None, max_length=500)


class AcceptForm(BaseModel):
    custom_message: Optional[str] = Field(default=None, max_length=1000)


class RejectForm(BaseModel):
    rejection_reason: Optional[str] = Field(default=None, max_length=1000)
    custom_message: Optional[str] = Field(default=None, max_length=1000)
    add_to_waitlist: bool = False


class BulkAcceptForm(AcceptForm):
    enrollment_ids: List[int] = Field(min_length=1)


class BulkRejectForm(RejectForm):
    enrollment_ids: List[int] = Field(min_length=1)


class NotesForm(BaseModel):
    professor_notes: Optional[str] = Field(default=None, max_length=2000)


class EnrollmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    activity_id: int
    status: EnrollmentStatus
    motivation: Optional[str] = None
    availability: Optional[str] = None
    experience: Optional[str] = None
    rejection_reason: Optional[str] = None
    custom_message: Optional[str] = None
    professor_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    attendance_status: AttendanceStatus
    enrolled_at: datetime
