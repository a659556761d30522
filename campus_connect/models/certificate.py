from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship

from ..utils.clock import utcnow

if TYPE_CHECKING:
    from .user import User
    from .activity import Activity


class CertificateType(str, Enum):
    PARTICIPATION = "participation"
    COMPLETION = "completion"
    HOURS = "hours"


class Certificate(SQLModel, table=True):
    __tablename__ = "certificates"

    id: Optional[int] = Field(default=None, primary_key=True)
    certificate_number: str = Field(unique=True, index=True)  # CC-XXXXXXXX
    user_id: int = Field(foreign_key="users.id", index=True)
    activity_id: Optional[int] = Field(default=None, foreign_key="activities.id")
    certificate_type: CertificateType = Field(default=CertificateType.PARTICIPATION)
    total_hours: float = 0
    issued_at: datetime = Field(default_factory=utcnow, index=True)

    user: "User" = Relationship()
    activity: Optional["Activity"] = Relationship()
