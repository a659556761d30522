from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..db import get_session
from ..dependencies import get_current_user, require_role
from ..errors import ValidationError
from ..models import User, UserRole
from ..schemas.enrollment import (
    AcceptForm,
    BulkAcceptForm,
    BulkRejectForm,
    EnrollForm,
    EnrollmentRead,
    NotesForm,
    RejectForm,
)
from ..services import enrollments as workflow
from ..services.email import EmailSender, get_email_sender
from ..services.rate_limit import enroll_limiter, rate_limited

router = APIRouter(prefix="/api/activities/{activity_id}", tags=["enrollments"])


@router.post("/enroll", status_code=status.HTTP_201_CREATED, dependencies=[Depends(rate_limited(enroll_limiter))])
def enroll(
    activity_id: int,
    form: EnrollForm,
    current_user: User = Depends(require_role(UserRole.STUDENT)),
    session: Session = Depends(get_session),
):
    enrollment = workflow.apply(
        session, activity_id, current_user, form.motivation, form.availability, form.experience,
    )
    return {"message": "Application submitted", "enrollment": EnrollmentRead.model_validate(enrollment)}


# Literal bulk routes are registered before the "{enrollment_id}" ones.
@router.put("/enrollments/bulk-accept")
def bulk_accept(
    activity_id: int,
    form: BulkAcceptForm,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    activity = workflow.get_owned_activity(session, activity_id, current_user,
                                           "You cannot accept applications for this activity")
    processed, errors = workflow.bulk_review(
        session,
        form.enrollment_ids,
        lambda eid: workflow.accept(session, activity, eid, current_user, form.custom_message, sender),
    )
    if not processed:
        raise ValidationError("No applications could be accepted", details=errors)
    return {
        "message": f"{len(processed)} application(s) accepted",
        "processed": [e.id for e in processed],
        "errors": errors or None,
    }


@router.put("/enrollments/bulk-reject")
def bulk_reject(
    activity_id: int,
    form: BulkRejectForm,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    activity = workflow.get_owned_activity(session, activity_id, current_user,
                                           "You cannot reject applications for this activity")
    if not form.rejection_reason or not form.rejection_reason.strip():
        raise ValidationError("Rejection reason is required")

    processed, errors = workflow.bulk_review(
        session,
        form.enrollment_ids,
        lambda eid: workflow.reject(session, activity, eid, current_user, form.rejection_reason,
                                    form.custom_message, form.add_to_waitlist, sender),
    )
    if not processed:
        raise ValidationError("No applications could be rejected", details=errors)
    return {
        "message": f"{len(processed)} application(s) rejected",
        "processed": [e.id for e in processed],
        "errors": errors or None,
    }


@router.put("/enrollments/{enrollment_id}/accept")
def accept(
    activity_id: int,
    enrollment_id: int,
    form: AcceptForm,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    activity = workflow.get_owned_activity(session, activity_id, current_user,
                                           "You cannot accept applications for this activity")
    enrollment = workflow.accept(session, activity, enrollment_id, current_user, form.custom_message, sender)
    return {"message": "Application accepted", "enrollment_id": enrollment.id, "status": enrollment.status}


@router.put("/enrollments/{enrollment_id}/reject")
def reject(
    activity_id: int,
    enrollment_id: int,
    form: RejectForm,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    activity = workflow.get_owned_activity(session, activity_id, current_user,
                                           "You cannot reject applications for this activity")
    enrollment = workflow.reject(
        session, activity, enrollment_id, current_user,
        form.rejection_reason, form.custom_message, form.add_to_waitlist, sender,
    )
    return {
        "message": "Application added to the waiting list" if form.add_to_waitlist else "Application rejected",
        "enrollment_id": enrollment.id,
        "status": enrollment.status,
    }


@router.put("/enrollments/{enrollment_id}/notes")
def save_notes(
    activity_id: int,
    enrollment_id: int,
    form: NotesForm,
    current_user: User = Depends(require_role(UserRole.PROFESSOR)),
    session: Session = Depends(get_session),
):
    activity = workflow.get_owned_activity(session, activity_id, current_user)
    enrollment = workflow.save_notes(session, activity, enrollment_id, form.professor_notes)
    return {"message": "Notes saved", "enrollment_id": enrollment.id, "professor_notes": enrollment.professor_notes}


@router.put("/enrollments/{enrollment_id}/cancel")
def cancel(
    activity_id: int,
    enrollment_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    enrollment, promoted = workflow.cancel(session, activity_id, enrollment_id, current_user, sender)
    return {
        "message": "Enrollment cancelled",
        "enrollment_id": enrollment.id,
        "promoted_enrollment_id": promoted.id if promoted else None,
    }
