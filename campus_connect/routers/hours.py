from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from ..db import get_session
from ..dependencies import get_current_user, require_role
from ..models import Activity, HoursRequest, HoursRequestStatus, User, UserRole
from ..schemas.hours import (
    ApproveHoursForm,
    BulkApproveForm,
    HoursRequestRead,
    LogHoursForm,
    RejectHoursForm,
    RequestInfoForm,
)
from ..services import hours as workflow
from ..services.email import EmailSender, get_email_sender

router = APIRouter(tags=["hours"])

professor_required = require_role(UserRole.PROFESSOR)


@router.post("/api/hours/log", status_code=status.HTTP_201_CREATED)
def log_hours(
    form: LogHoursForm,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    request = workflow.log_hours(
        session,
        current_user,
        form.enrollment_id,
        form.activity_id,
        form.hours,
        form.date,
        form.description,
        [str(url) for url in form.evidence_urls or []],
    )
    return {"message": "Hours logged and awaiting review", "request": HoursRequestRead.model_validate(request)}


@router.get("/api/hours")
def my_hours(
    status: Optional[HoursRequestStatus] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(HoursRequest).where(HoursRequest.user_id == current_user.id)
    if status:
        query = query.where(HoursRequest.status == status)
    requests = session.exec(query.order_by(HoursRequest.created_at.desc())).all()

    approved = sum(r.hours for r in requests if r.status == HoursRequestStatus.APPROVED)
    return {
        "requests": [HoursRequestRead.model_validate(r) for r in requests],
        "total": len(requests),
        "approved_hours": approved,
    }


@router.get("/api/professor/hours")
def professor_hours(
    status: Optional[HoursRequestStatus] = HoursRequestStatus.PENDING,
    activity_id: Optional[int] = None,
    current_user: User = Depends(professor_required),
    session: Session = Depends(get_session),
):
    query = (
        select(HoursRequest, Activity, User)
        .join(Activity, Activity.id == HoursRequest.activity_id)
        .join(User, User.id == HoursRequest.user_id)
        .where(Activity.created_by == current_user.id)
    )
    if status:
        query = query.where(HoursRequest.status == status)
    if activity_id:
        query = query.where(Activity.id == activity_id)

    rows = session.exec(query.order_by(HoursRequest.created_at.asc())).all()
    return {
        "requests": [
            {
                **HoursRequestRead.model_validate(request).model_dump(mode="json"),
                "activity_title": activity.title,
                "student": {"id": student.id, "name": student.full_name, "email": student.email},
            }
            for request, activity, student in rows
        ],
        "total": len(rows),
    }


# Declared before the "{request_id}" routes so "bulk-approve" is not read as an id.
@router.post("/api/professor/hours/bulk-approve")
def bulk_approve(
    form: BulkApproveForm,
    current_user: User = Depends(professor_required),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    approved, errors = workflow.bulk_approve(session, form.request_ids, current_user, form.notes, sender)
    return {
        "message": f"{len(approved)} request(s) approved",
        "approved": [r.id for r in approved],
        "errors": errors or None,
    }


@router.post("/api/professor/hours/{request_id}/approve")
def approve(
    request_id: int,
    form: ApproveHoursForm,
    current_user: User = Depends(professor_required),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    request = workflow.approve(session, request_id, current_user, form.notes, sender)
    return {"message": "Hours approved", "request": HoursRequestRead.model_validate(request)}


@router.post("/api/professor/hours/{request_id}/reject")
def reject(
    request_id: int,
    form: RejectHoursForm,
    current_user: User = Depends(professor_required),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    request = workflow.reject(session, request_id, current_user, form.reason, sender)
    return {"message": "Hours rejected", "request": HoursRequestRead.model_validate(request)}


@router.post("/api/professor/hours/{request_id}/request-info")
def request_info(
    request_id: int,
    form: RequestInfoForm,
    current_user: User = Depends(professor_required),
    session: Session = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
):
    request = workflow.request_info(session, request_id, current_user, form.message, sender)
    return {"message": "Information requested from the student", "request_id": request.id}
