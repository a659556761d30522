from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from ..models import HoursRequestStatus


class LogHoursForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    enrollment_id: int
    activity_id: int
    hours: float = Field(ge=0.5, le=24)
    date: date
    description: str = Field(min_length=20, max_length=1000)
    evidence_urls: Optional[List[HttpUrl]] = None

    @field_validator("date")
    @classmethod
    def not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("Date cannot be in the future")
        return value


class ApproveHoursForm(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=1000)


class RejectHoursForm(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class RequestInfoForm(BaseModel):
    message: Optional[str] = Field(default=None, max_length=1000)


class BulkApproveForm(BaseModel):
    request_ids: List[int] = Field(min_length=1)
    notes: Optional[str] = Field(default=None, max_length=1000)


class HoursRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    enrollment_id: int
    user_id: int
    activity_id: int
    hours: float
    date: date
    description: str
    evidence_urls: List[str] = []
    status: HoursRequestStatus
    professor_notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
