from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from ..db import get_session
from ..dependencies import require_role
from ..models import (
    Activity,
    AttendanceStatus,
    Enrollment,
    EnrollmentStatus,
    HoursRequest,
    HoursRequestStatus,
    User,
    UserRole,
)
from ..permissions import has_role
from ..schemas.user import UserRead

router = APIRouter(prefix="/api/students", tags=["students"])

RECENT_ACTIVITY_LIMIT = 10


def _has_applied_to(session: Session, student_id: int, professor: User) -> bool:
    enrollment = session.exec(
        select(Enrollment.id)
        .join(Activity, Activity.id == Enrollment.activity_id)
        .where(
            Enrollment.user_id == student_id,
            Enrollment.deleted_at == None,  # noqa: E711
            Activity.created_by == professor.id,
            Activity.deleted_at == None,  # noqa: E711
        )
    ).first()
    return enrollment is not None


@router.get("/{student_id}/profile")
def student_profile(
    student_id: int,
    current_user: User = Depends(require_role(UserRole.PROFESSOR, UserRole.ADMIN)),
    session: Session = Depends(get_session),
):
    """Applicant profile with volunteering history, shown to professors reviewing an application."""
    student = session.get(User, student_id)
    if student is None or student.deleted_at is not None or not has_role(student.role, [UserRole.STUDENT]):
        raise HTTPException(status_code=404, detail="Student not found")
    if not has_role(current_user.role, [UserRole.ADMIN]) and not _has_applied_to(session, student.id, current_user):
        raise HTTPException(status_code=403, detail="This student has not applied to any of your activities")

    confirmed = (
        Enrollment.user_id == student.id,
        Enrollment.status == EnrollmentStatus.CONFIRMED,
        Enrollment.deleted_at == None,  # noqa: E711
    )
    attended = session.exec(
        select(Enrollment, Activity)
        .join(Activity, Activity.id == Enrollment.activity_id)
        .where(*confirmed, Enrollment.attendance_status == AttendanceStatus.PRESENT)
        .order_by(Enrollment.enrolled_at.desc())
    ).all()
    total_enrolled = session.exec(select(func.count(Enrollment.id)).where(*confirmed)).one()
    total_hours = session.exec(
        select(func.coalesce(func.sum(HoursRequest.hours), 0)).where(
            HoursRequest.user_id == student.id,
            HoursRequest.status == HoursRequestStatus.APPROVED,
        )
    ).one()

    attendance_rate = round(len(attended) / total_enrolled * 100, 1) if total_enrolled else 0
    return {
        "profile": UserRead.model_validate(student),
        "completedActivities": [
            {
                "id": activity.id,
                "title": activity.title,
                "date": activity.date,
                "category": activity.category,
                "enrolledAt": enrollment.enrolled_at,
                "attendanceStatus": enrollment.attendance_status,
            }
            for enrollment, activity in attended[:RECENT_ACTIVITY_LIMIT]
        ],
        "stats": {
            "totalVolunteerHours": float(total_hours),
            "attendanceRate": attendance_rate,
            "totalActivitiesEnrolled": total_enrolled,
            "totalActivitiesAttended": len(attended),
        },
    }
