from .user import User, UserRole, ProgramType
from .activity import Activity, ActivityStatus, ACTIVITY_TRANSITIONS
from .attendance import Attendance, AttendanceStatus, CheckInMethod
from .enrollment import Enrollment, EnrollmentStatus, ENROLLMENT_TRANSITIONS
from .hours import HoursRequest, HoursRequestStatus
from .notification import Notification, NotificationType
from .activity_session import ActivitySession, SessionStatus
from .certificate import Certificate, CertificateType

__all__ = [
    "User", "UserRole", "ProgramType",
    "Activity", "ActivityStatus", "ACTIVITY_TRANSITIONS",
    "Attendance", "AttendanceStatus", "CheckInMethod",
    "Enrollment", "EnrollmentStatus", "ENROLLMENT_TRANSITIONS",
    "HoursRequest", "HoursRequestStatus",
    "Notification", "NotificationType",
    "ActivitySession", "SessionStatus",
    "Certificate", "CertificateType",
]
