from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import ActivityStatus


class ActivityCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=10, max_length=100)
    description: str = Field(min_length=50, max_length=2000)
    category: str = Field(min_length=1, max_length=64)
    location: str = Field(min_length=5, max_length=200)
    max_participants: int = Field(ge=1, le=500)
    eligibility_criteria: Optional[str] = Field(default=None, max_length=500)
    date: date
    start_time: time
    end_time: time
    status: Optional[ActivityStatus] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ActivityStatusUpdate(BaseModel):
    status: ActivityStatus


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    category: Optional[str] = None
    location: Optional[str] = None
    eligibility_criteria: Optional[str] = None
    status: ActivityStatus
    created_by: int
    max_participants: int
    current_participants: int
    date: date
    start_time: time
    end_time: time
    created_at: datetime
    updated_at: Optional[datetime] = None
