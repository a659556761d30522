from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import SessionStatus


class SessionCreate(BaseModel):
    date: date
    start_time: time
    end_time: time
    location: Optional[str] = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    model_config = ConfigDict(str_strip_whitespace=True)

    date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    status: Optional[SessionStatus] = None


class SessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    activity_id: int
    date: date
    start_time: time
    end_time: time
    location: Optional[str] = None
    status: SessionStatus
    qr_expires_at: Optional[datetime] = None


class CheckInForm(BaseModel):
    qr_code_data: str = Field(min_length=1)
