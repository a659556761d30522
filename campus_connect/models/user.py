from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import CheckConstraint

from ..security import hash_password, verify_and_update_password
from ..utils.clock import utcnow

if TYPE_CHECKING:
    from .enrollment import Enrollment
    from .notification import Notification


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    PROFESSOR = "PROFESSOR"
    ADMIN = "ADMIN"


class ProgramType(str, Enum):
    LICENSE = "LICENSE"
    MASTER = "MASTER"
    DOCTORAT = "DOCTORAT"


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("year IS NULL OR year BETWEEN 1 AND 6", name="ck_user_study_year"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    first_name: str
    last_name: str
    # Stored upper-case; older rows may carry lower-case values
    role: str = Field(default=UserRole.STUDENT.value, index=True)
    password_hash: str = ""
    phone: Optional[str] = None
    faculty: Optional[str] = None
    specialization: Optional[str] = None
    year: Optional[int] = None
    program_type: Optional[ProgramType] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    enrollments: List["Enrollment"] = Relationship(
        back_populates="user", sa_relationship_kwargs={"foreign_keys": "[Enrollment.user_id]"}
    )
    notifications: List["Notification"] = Relationship(back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        valid, new_hash = verify_and_update_password(password, self.password_hash)
        if valid and new_hash:
            self.password_hash = new_hash
        return valid
