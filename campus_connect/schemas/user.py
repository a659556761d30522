from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import ProgramType, UserRole


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    phone: Optional[str] = None
    faculty: Optional[str] = None
    specialization: Optional[str] = None
    year: Optional[int] = None
    program_type: Optional[ProgramType] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(min_length=2, max_length=120)
    last_name: str = Field(min_length=2, max_length=120)
    phone: Optional[str] = None
    faculty: Optional[str] = None
    specialization: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1, le=6)
    program_type: Optional[ProgramType] = None


class RoleUpdate(BaseModel):
    role: UserRole


class BulkUserAction(BaseModel):
    action: Literal["change_role", "deactivate"]
    user_ids: List[int] = Field(min_length=1)
    new_role: Optional[UserRole] = None
