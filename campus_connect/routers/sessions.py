import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from ..config import settings
from ..db import get_session
from ..dependencies import get_current_user, require_role
from ..models import (
    ActivitySession,
    Attendance,
    AttendanceStatus,
    CheckInMethod,
    Enrollment,
    EnrollmentStatus,
    NotificationType,
    SessionStatus,
    User,
    UserRole,
)
from ..permissions import is_allowed
from ..schemas.session import CheckInForm, SessionCreate, SessionRead, SessionUpdate
from ..services.enrollments import find_live_enrollment, get_live_activity, get_owned_activity, is_participant
from ..services.notifications import notify
from ..utils import qr
from ..utils.clock import utcnow

log = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])


def _get_session_or_404(session: Session, session_id: int) -> ActivitySession:
    activity_session = session.get(ActivitySession, session_id)
    if activity_session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return activity_session


@router.post("/api/activities/{activity_id}/sessions", status_code=status.HTTP_201_CREATED)
def create_session(
    activity_id: int,
    form: SessionCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activity = get_owned_activity(session, activity_id, current_user)
    activity_session = ActivitySession(
        activity_id=activity.id,
        date=form.date,
        start_time=form.start_time,
        end_time=form.end_time,
        location=form.location or activity.location,
    )
    session.add(activity_session)
    session.commit()
    session.refresh(activity_session)
    return {"message": "Session created", "session": SessionRead.model_validate(activity_session)}


@router.get("/api/activities/{activity_id}/sessions")
def list_sessions(
    activity_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activity = get_live_activity(session, activity_id)
    if not is_allowed(current_user.role, current_user.id, owner_id=activity.created_by) \
            and not is_participant(session, current_user, activity):
        raise HTTPException(status_code=403, detail="You cannot view the sessions of this activity")

    sessions = session.exec(
        select(ActivitySession)
        .where(ActivitySession.activity_id == activity.id)
        .order_by(ActivitySession.date.asc(), ActivitySession.start_time.asc())
    ).all()
    return {"sessions": [SessionRead.model_validate(s) for s in sessions], "total": len(sessions)}


def _get_activity_session_or_404(session: Session, activity_id: int, session_id: int) -> ActivitySession:
    activity_session = session.get(ActivitySession, session_id)
    if activity_session is None or activity_session.activity_id != activity_id:
        raise HTTPException(status_code=404, detail="Session not found")
    return activity_session


@router.put("/api/activities/{activity_id}/sessions/{session_id}")
def update_session(
    activity_id: int,
    session_id: int,
    form: SessionUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_owned_activity(session, activity_id, current_user, "Only the activity creator can update sessions")
    activity_session = _get_activity_session_or_404(session, activity_id, session_id)
    if activity_session.status == SessionStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Cannot change a completed session")

    for key, value in form.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(activity_session, key, value)
    if activity_session.end_time <= activity_session.start_time:
        raise HTTPException(status_code=400, detail="end_time must be after start_time")

    activity_session.updated_at = utcnow()
    session.add(activity_session)
    session.commit()
    session.refresh(activity_session)
    return {"message": "Session updated", "session": SessionRead.model_validate(activity_session)}


@router.delete("/api/activities/{activity_id}/sessions/{session_id}")
def cancel_session(
    activity_id: int,
    session_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Marks the session CANCELLED; the row and its attendance are kept."""
    activity = get_owned_activity(session, activity_id, current_user,
                                  "Only the activity creator can cancel sessions")
    activity_session = _get_activity_session_or_404(session, activity_id, session_id)
    if activity_session.status == SessionStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Cannot cancel a completed session")

    participants = session.exec(
        select(Enrollment).where(
            Enrollment.activity_id == activity.id,
            Enrollment.status == EnrollmentStatus.CONFIRMED,
            Enrollment.deleted_at == None,  # noqa: E711
        )
    ).all()

    activity_session.status = SessionStatus.CANCELLED
    activity_session.qr_code_data = None
    activity_session.qr_expires_at = None
    activity_session.updated_at = utcnow()
    session.add(activity_session)
    for enrollment in participants:
        notify(session, enrollment.user_id, NotificationType.SESSION_CANCELLED, "Session cancelled",
               f"The {activity_session.date.isoformat()} session of {activity.title} was cancelled.",
               activity_id=activity.id)
    session.commit()
    log.info("User %s cancelled session %s, notified %s participants",
             current_user.id, activity_session.id, len(participants))
    return {"message": "Session cancelled", "notified_students": len(participants)}


@router.post("/api/sessions/{session_id}/qr")
def generate_qr(
    session_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activity_session = _get_session_or_404(session, session_id)
    get_owned_activity(session, activity_session.activity_id, current_user,
                       "You cannot generate a QR code for this session")

    now = utcnow()
    if activity_session.status in (SessionStatus.CANCELLED, SessionStatus.COMPLETED):
        raise HTTPException(status_code=400, detail=f"Session is {activity_session.status.value.lower()}")
    if activity_session.date != date.today() and activity_session.status != SessionStatus.IN_PROGRESS:
        raise HTTPException(status_code=400, detail="QR codes can only be generated on the day of the session")

    payload = qr.build_payload(activity_session.id, activity_session.activity_id)
    activity_session.qr_code_data = qr.encode_payload(payload)
    activity_session.qr_expires_at = qr.expiry_from(now, settings.QR_CODE_TTL_SECONDS)
    activity_session.status = SessionStatus.IN_PROGRESS
    session.add(activity_session)
    session.commit()
    session.refresh(activity_session)
    return {
        "message": "QR code generated",
        "qr_code_data": activity_session.qr_code_data,
        "qr_expires_at": activity_session.qr_expires_at,
    }


@router.post("/api/sessions/{session_id}/check-in", status_code=status.HTTP_201_CREATED)
def check_in(
    session_id: int,
    form: CheckInForm,
    current_user: User = Depends(require_role(UserRole.STUDENT)),
    session: Session = Depends(get_session),
):
    activity_session = _get_session_or_404(session, session_id)
    if activity_session.status in (SessionStatus.CANCELLED, SessionStatus.COMPLETED):
        raise HTTPException(status_code=400, detail=f"Session is {activity_session.status.value.lower()}")

    payload = qr.decode_payload(form.qr_code_data)
    if payload is None or payload.session_id != activity_session.id \
            or form.qr_code_data != activity_session.qr_code_data:
        raise HTTPException(status_code=400, detail="Invalid QR code")

    now = utcnow()
    if qr.is_expired(activity_session.qr_expires_at, now):
        raise HTTPException(status_code=400, detail="QR code has expired")
    if not qr.within_check_in_window(activity_session.starts_at, datetime.now(), settings.CHECK_IN_WINDOW_MINUTES):
        raise HTTPException(status_code=400, detail="Check-in is closed for this session")

    enrollment = find_live_enrollment(session, current_user.id, activity_session.activity_id)
    if enrollment is None or enrollment.status != EnrollmentStatus.CONFIRMED:
        raise HTTPException(status_code=403, detail="You are not enrolled in this activity")

    existing = session.exec(
        select(Attendance).where(
            Attendance.session_id == activity_session.id,
            Attendance.enrollment_id == enrollment.id,
        )
    ).first()
    if existing is not None:
        raise HTTPException(status_code=400, detail="You have already checked in to this session")

    attendance = Attendance(
        session_id=activity_session.id,
        enrollment_id=enrollment.id,
        user_id=current_user.id,
        status=AttendanceStatus.PRESENT,
        check_in_method=CheckInMethod.QR_CODE,
        hours_credited=activity_session.duration_hours,
        checked_in_at=now,
    )
    enrollment.attendance_status = AttendanceStatus.PRESENT
    enrollment.updated_at = now
    session.add(attendance)
    session.add(enrollment)
    session.commit()
    session.refresh(attendance)
    log.info("User %s checked in to session %s", current_user.id, activity_session.id)
    return {
        "message": "Check-in successful",
        "attendance_id": attendance.id,
        "hours_credited": attendance.hours_credited,
        "checked_in_at": attendance.checked_in_at,
    }
