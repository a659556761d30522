"""Hours requests: students log worked hours, the owning professor reviews them.

A request leaves PENDING exactly once. Reviews on anything else fail with 400
and leave the row untouched.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from . import email as mail
from .notifications import notify
from ..errors import InvalidStateError, NotFoundError, PermissionDeniedError, ValidationError
from ..models import (
    Activity,
    Enrollment,
    EnrollmentStatus,
    HoursRequest,
    HoursRequestStatus,
    NotificationType,
    User,
)
from ..permissions import ensure_allowed, is_allowed
from ..utils.clock import utcnow

log = logging.getLogger(__name__)


def log_hours(session: Session, student: User, enrollment_id: int, activity_id: int, hours: float,
              worked_on: date, description: str, evidence_urls: Optional[List[str]] = None) -> HoursRequest:
    enrollment = session.exec(
        select(Enrollment).where(
            Enrollment.id == enrollment_id,
            Enrollment.user_id == student.id,
            Enrollment.activity_id == activity_id,
            Enrollment.deleted_at == None,  # noqa: E711
        )
    ).first()
    if enrollment is None:
        raise PermissionDeniedError("Enrollment not found or does not belong to you")
    if enrollment.status != EnrollmentStatus.CONFIRMED:
        raise PermissionDeniedError("Your enrollment must be confirmed before logging hours")

    activity = session.get(Activity, activity_id)
    if activity is None or activity.deleted_at is not None:
        raise NotFoundError("Activity not found")

    request = HoursRequest(
        enrollment_id=enrollment.id,
        user_id=student.id,
        activity_id=activity.id,
        hours=hours,
        date=worked_on,
        description=description,
        evidence_urls=list(evidence_urls or []),
        status=HoursRequestStatus.PENDING,
    )
    session.add(request)
    session.commit()
    session.refresh(request)
    return request


def get_reviewable(session: Session, request_id: int, professor: User,
                   message: str = "You cannot review this request") -> HoursRequest:
    """Load a request and confirm the caller owns the activity behind its enrollment."""
    request = session.get(HoursRequest, request_id)
    if request is None:
        raise NotFoundError("Hours request not found")
    ensure_allowed(professor.role, professor.id,
                   owner_id=request.enrollment.activity.created_by, message=message)
    return request


def _ensure_pending(request: HoursRequest) -> None:
    if not request.is_pending:
        raise InvalidStateError(f"Request is already {request.status.value.lower()}")


def _student_message(request: HoursRequest, build) -> tuple[str, str]:
    student = request.enrollment.user
    return student.email, build(student.first_name)


def approve(session: Session, request_id: int, professor: User, notes: Optional[str],
            sender: mail.EmailSender) -> HoursRequest:
    request = get_reviewable(session, request_id, professor)
    _ensure_pending(request)
    _mark_approved(session, request, professor, notes)
    session.commit()
    session.refresh(request)
    _send_approved(request, professor, notes, sender)
    return request


def _mark_approved(session: Session, request: HoursRequest, professor: User, notes: Optional[str]) -> None:
    now = utcnow()
    request.status = HoursRequestStatus.APPROVED
    request.approved_by = professor.id
    request.approved_at = now
    request.reviewed_by = professor.id
    request.reviewed_at = now
    request.professor_notes = notes or None
    activity = request.enrollment.activity
    notify(session, request.user_id, NotificationType.HOURS_APPROVED, "Hours approved",
           f"{request.hours:g} hours for {activity.title} were approved.", activity.id)
    session.add(request)


def _send_approved(request: HoursRequest, professor: User, notes: Optional[str], sender: mail.EmailSender) -> None:
    activity = request.enrollment.activity
    to, message = _student_message(request, lambda name: mail.hours_approved(
        name, activity.title, professor.full_name, request.hours, request.date.isoformat(), notes,
    ))
    mail.deliver(sender, to, message)


def reject(session: Session, request_id: int, professor: User, reason: Optional[str],
           sender: mail.EmailSender) -> HoursRequest:
    if not reason or not reason.strip():
        raise ValidationError("Rejection reason is required")

    request = get_reviewable(session, request_id, professor)
    _ensure_pending(request)

    now = utcnow()
    request.status = HoursRequestStatus.REJECTED
    request.reviewed_by = professor.id
    request.reviewed_at = now
    request.professor_notes = reason.strip()
    activity = request.enrollment.activity
    notify(session, request.user_id, NotificationType.HOURS_REJECTED, "Hours rejected",
           f"{request.hours:g} hours for {activity.title} were rejected: {request.professor_notes}", activity.id)
    session.add(request)
    session.commit()
    session.refresh(request)

    to, message = _student_message(request, lambda name: mail.hours_rejected(
        name, activity.title, professor.full_name, request.hours, request.date.isoformat(),
        request.professor_notes,
    ))
    mail.deliver(sender, to, message)
    return request


def request_info(session: Session, request_id: int, professor: User, message: Optional[str],
                 sender: mail.EmailSender) -> HoursRequest:
    """Ask the student for details. No status change."""
    if not message or not message.strip():
        raise ValidationError("Message is required")

    request = get_reviewable(session, request_id, professor,
                             message="You cannot contact the student about this request")
    if not request.is_pending:
        raise InvalidStateError("Information can only be requested for pending requests")

    activity = request.enrollment.activity
    notify(session, request.user_id, NotificationType.HOURS_INFO_REQUESTED, "More information requested",
           message.strip(), activity.id)
    session.commit()

    to, email_message = _student_message(request, lambda name: mail.hours_info_requested(
        name, activity.title, professor.full_name, request.hours, request.date.isoformat(), message.strip(),
    ))
    mail.deliver(sender, to, email_message)
    return request


def bulk_approve(session: Session, request_ids: Iterable[int], professor: User, notes: Optional[str],
                 sender: mail.EmailSender) -> Tuple[List[HoursRequest], List[str]]:
    ids = list(dict.fromkeys(request_ids))
    requests = session.exec(select(HoursRequest).where(HoursRequest.id.in_(ids))).all()
    found = {r.id for r in requests}

    errors: List[str] = [f"Request {rid} not found" for rid in ids if rid not in found]
    valid: List[HoursRequest] = []
    for request in requests:
        if not is_allowed(professor.role, professor.id, owner_id=request.enrollment.activity.created_by):
            errors.append(f"Request {request.id} is not for your activity")
            continue
        if not request.is_pending:
            errors.append(f"Request {request.id} is already {request.status.value.lower()}")
            continue
        valid.append(request)

    if not valid:
        raise ValidationError("No valid requests to approve", details=errors)

    for request in valid:
        _mark_approved(session, request, professor, notes)
    session.commit()

    for request in valid:
        session.refresh(request)
        _send_approved(request, professor, notes, sender)
    return valid, errors
