"""Enrollment lifecycle: apply, review, withdraw, waitlist promotion.

Status changes are committed before any email goes out; email is best-effort
and never rolls a transition back.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from . import email as mail
from .notifications import notify
from ..config import settings
from ..errors import CampusConnectError, InvalidStateError, NotFoundError, ValidationError
from ..models import (
    Activity,
    ActivityStatus,
    Enrollment,
    EnrollmentStatus,
    NotificationType,
    User,
    UserRole,
)
from ..permissions import ensure_allowed, has_role
from ..utils.cancellation import validate_cancellation
from ..utils.clock import utcnow

log = logging.getLogger(__name__)


def get_live_activity(session: Session, activity_id: int) -> Activity:
    activity = session.get(Activity, activity_id)
    if activity is None or activity.deleted_at is not None:
        raise NotFoundError("Activity not found")
    return activity


def get_owned_activity(session: Session, activity_id: int, caller: User,
                       message: str = "You do not manage this activity") -> Activity:
    activity = get_live_activity(session, activity_id)
    ensure_allowed(caller.role, caller.id, owner_id=activity.created_by, message=message)
    return activity


def get_activity_enrollment(session: Session, activity: Activity, enrollment_id: int) -> Enrollment:
    enrollment = session.exec(
        select(Enrollment).where(
            Enrollment.id == enrollment_id,
            Enrollment.activity_id == activity.id,
            Enrollment.deleted_at == None,  # noqa: E711
        )
    ).first()
    if enrollment is None:
        raise NotFoundError("Enrollment not found")
    return enrollment


def find_live_enrollment(session: Session, user_id: int, activity_id: int) -> Optional[Enrollment]:
    return session.exec(
        select(Enrollment).where(
            Enrollment.user_id == user_id,
            Enrollment.activity_id == activity_id,
            Enrollment.deleted_at == None,  # noqa: E711
        )
    ).first()


def apply(session: Session, activity_id: int, student: User, motivation: str, availability: str,
          experience: Optional[str] = None) -> Enrollment:
    activity = get_live_activity(session, activity_id)
    if activity.status != ActivityStatus.OPEN:
        raise InvalidStateError("This activity is not open for applications")
    if activity.is_full:
        raise InvalidStateError("This activity is full")

    enrollment = find_live_enrollment(session, student.id, activity.id)
    if enrollment is not None:
        if enrollment.status == EnrollmentStatus.CONFIRMED:
            raise InvalidStateError("You are already enrolled in this activity")
        if enrollment.status == EnrollmentStatus.PENDING:
            raise InvalidStateError("You already have a pending application for this activity")
        # Cancelled and waitlisted applications are reopened in place to keep one row per pair
        enrollment.status = EnrollmentStatus.PENDING
        enrollment.rejection_reason = None
        enrollment.custom_message = None
        enrollment.reviewed_at = None
        enrollment.reviewed_by = None
        enrollment.enrolled_at = utcnow()
        enrollment.updated_at = utcnow()
    else:
        enrollment = Enrollment(user_id=student.id, activity_id=activity.id)

    enrollment.motivation = motivation
    enrollment.availability = availability
    enrollment.experience = experience or None
    session.add(enrollment)
    session.commit()
    session.refresh(enrollment)
    return enrollment


def accept(session: Session, activity: Activity, enrollment_id: int, professor: User,
           custom_message: Optional[str], sender: mail.EmailSender) -> Enrollment:
    enrollment = get_activity_enrollment(session, activity, enrollment_id)
    if not enrollment.can_transition_to(EnrollmentStatus.CONFIRMED):
        raise InvalidStateError(f"Enrollment is already {enrollment.status.value.lower()}")
    if activity.is_full:
        raise InvalidStateError("Activity is already full (max participants reached)")

    now = utcnow()
    enrollment.status = EnrollmentStatus.CONFIRMED
    enrollment.custom_message = custom_message or None
    enrollment.reviewed_at = now
    enrollment.reviewed_by = professor.id
    enrollment.updated_at = now
    activity.current_participants += 1
    notify(
        session,
        enrollment.user_id,
        NotificationType.APPLICATION_ACCEPTED,
        "Application accepted",
        f"Your application for {activity.title} was accepted.",
        activity.id,
    )
    session.add(enrollment)
    session.add(activity)
    session.commit()
    session.refresh(enrollment)

    student = enrollment.user
    mail.deliver(sender, student.email, mail.application_accepted(
        student.first_name, activity.title, professor.full_name, custom_message,
    ))
    return enrollment


def reject(session: Session, activity: Activity, enrollment_id: int, professor: User,
           rejection_reason: Optional[str], custom_message: Optional[str], add_to_waitlist: bool,
           sender: mail.EmailSender) -> Enrollment:
    if not rejection_reason or not rejection_reason.strip():
        raise ValidationError("Rejection reason is required")

    enrollment = get_activity_enrollment(session, activity, enrollment_id)
    if enrollment.status != EnrollmentStatus.PENDING:
        raise InvalidStateError(f"Enrollment is already {enrollment.status.value.lower()}")

    new_status = EnrollmentStatus.WAITLISTED if add_to_waitlist else EnrollmentStatus.CANCELLED
    now = utcnow()
    enrollment.status = new_status
    enrollment.rejection_reason = rejection_reason.strip()
    enrollment.custom_message = custom_message or None
    enrollment.reviewed_at = now
    enrollment.reviewed_by = professor.id
    enrollment.updated_at = now
    if add_to_waitlist:
        notify(session, enrollment.user_id, NotificationType.APPLICATION_WAITLISTED,
               "Added to the waiting list",
               f"Your application for {activity.title} was placed on the waiting list.", activity.id)
    else:
        notify(session, enrollment.user_id, NotificationType.APPLICATION_REJECTED,
               "Application rejected",
               f"Your application for {activity.title} was not accepted: {enrollment.rejection_reason}",
               activity.id)
    session.add(enrollment)
    session.commit()
    session.refresh(enrollment)

    student = enrollment.user
    mail.deliver(sender, student.email, mail.application_rejected(
        student.first_name, activity.title, enrollment.rejection_reason, custom_message,
        waitlisted=add_to_waitlist,
    ))
    return enrollment


def bulk_review(session: Session, enrollment_ids: Iterable[int], action) -> Tuple[List[Enrollment], List[str]]:
    """Apply ``action(enrollment_id)`` to each id, collecting per-id failures."""
    processed: List[Enrollment] = []
    errors: List[str] = []
    for enrollment_id in enrollment_ids:
        try:
            processed.append(action(enrollment_id))
        except CampusConnectError as e:
            session.rollback()
            errors.append(f"Enrollment {enrollment_id}: {e.message}")
    return processed, errors


def save_notes(session: Session, activity: Activity, enrollment_id: int,
               professor_notes: Optional[str]) -> Enrollment:
    enrollment = get_activity_enrollment(session, activity, enrollment_id)
    enrollment.professor_notes = professor_notes or None
    enrollment.updated_at = utcnow()
    session.add(enrollment)
    session.commit()
    session.refresh(enrollment)
    return enrollment


def promote_from_waitlist(session: Session, activity: Activity, sender: mail.EmailSender) -> Optional[Enrollment]:
    """Confirm the longest-waiting applicant if a seat is free."""
    if activity.is_full:
        return None

    candidate = session.exec(
        select(Enrollment)
        .where(
            Enrollment.activity_id == activity.id,
            Enrollment.status == EnrollmentStatus.WAITLISTED,
            Enrollment.deleted_at == None,  # noqa: E711
        )
        .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
    ).first()
    if candidate is None:
        return None

    now = utcnow()
    candidate.status = EnrollmentStatus.CONFIRMED
    candidate.reviewed_at = now
    candidate.updated_at = now
    activity.current_participants += 1
    notify(session, candidate.user_id, NotificationType.APPLICATION_ACCEPTED,
           "Promoted from the waiting list",
           f"A place opened up in {activity.title} and your enrollment is now confirmed.", activity.id)
    session.add(candidate)
    session.add(activity)
    session.commit()
    session.refresh(candidate)
    log.info("Enrollment %s (user %s) promoted from waiting list for activity %s",
             candidate.id, candidate.user_id, activity.id)

    student = candidate.user
    mail.deliver(sender, student.email, mail.application_accepted(
        student.first_name, activity.title, activity.creator.full_name,
        "A place opened up and you were promoted from the waiting list automatically.",
    ))
    return candidate


def cancel(session: Session, activity_id: int, enrollment_id: int, student: User,
           sender: mail.EmailSender, now=None) -> Tuple[Enrollment, Optional[Enrollment]]:
    """Student withdrawal from a confirmed enrollment."""
    activity = get_live_activity(session, activity_id)
    enrollment = get_activity_enrollment(session, activity, enrollment_id)
    ensure_allowed(student.role, student.id, owner_id=enrollment.user_id,
                   message="You cannot cancel this enrollment")
    if enrollment.status != EnrollmentStatus.CONFIRMED:
        raise InvalidStateError("Only confirmed enrollments can be cancelled")

    check = validate_cancellation(activity.starts_at, settings.CANCELLATION_DEADLINE_HOURS, now=now)
    if not check.can_cancel:
        raise InvalidStateError(check.message)

    stamp = utcnow()
    enrollment.status = EnrollmentStatus.CANCELLED
    enrollment.reviewed_at = stamp
    enrollment.updated_at = stamp
    activity.current_participants = max(0, activity.current_participants - 1)
    session.add(enrollment)
    session.add(activity)
    session.commit()
    session.refresh(enrollment)

    promoted = promote_from_waitlist(session, activity, sender)
    return enrollment, promoted


def is_participant(session: Session, user: User, activity: Activity) -> bool:
    if has_role(user.role, [UserRole.STUDENT]):
        enrollment = find_live_enrollment(session, user.id, activity.id)
        return enrollment is not None and enrollment.status == EnrollmentStatus.CONFIRMED
    return False
