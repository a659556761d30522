import logging
import re
import secrets
import string
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlmodel import Session, select

from ..config import settings
from ..db import get_session
from ..dependencies import get_current_user
from ..models import Activity, Certificate, HoursRequest, HoursRequestStatus, User, UserRole
from ..permissions import has_role
from ..schemas.certificate import GenerateCertificateForm
from ..services.rate_limit import (
    RateLimitResult,
    certificate_generate_limiter,
    certificate_verify_limiter,
    rate_limited,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/certificates", tags=["certificates"])

CODE_PATTERN = re.compile(r"^CC-[A-Z0-9]{8}$")
CODE_ALPHABET = string.ascii_uppercase + string.digits


def new_certificate_number(session: Session) -> str:
    while True:
        code = "CC-" + "".join(secrets.choice(CODE_ALPHABET) for _ in range(8))
        if session.exec(select(Certificate).where(Certificate.certificate_number == code)).first() is None:
            return code


@router.get("/verify")
def verify(
    _limit: RateLimitResult = Depends(rate_limited(certificate_verify_limiter)),
    code: Optional[str] = None,
    session: Session = Depends(get_session),
):
    if not code or not code.strip():
        raise HTTPException(status_code=400, detail="Certificate code is required")

    code = code.strip().upper()
    if not CODE_PATTERN.match(code):
        raise HTTPException(status_code=400, detail="Invalid certificate code format")

    certificate = session.exec(select(Certificate).where(Certificate.certificate_number == code)).first()
    if certificate is None:
        raise HTTPException(status_code=404, detail={"error": "Certificate not found", "valid": False})

    activity = certificate.activity
    return {
        "valid": True,
        "certificate": {
            "code": certificate.certificate_number,
            "type": certificate.certificate_type,
            "issued_at": certificate.issued_at,
            "holder_name": certificate.user.full_name,
            "activity_title": activity.title if activity else None,
            "activity_date": activity.date if activity else None,
            "total_hours": certificate.total_hours,
        },
    }


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate(
    form: GenerateCertificateForm,
    _limit: RateLimitResult = Depends(rate_limited(certificate_generate_limiter)),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if has_role(current_user.role, [UserRole.STUDENT]):
        if form.student_id is not None and form.student_id != current_user.id:
            raise HTTPException(status_code=403, detail="You can only generate your own certificates")
        holder = current_user
    else:
        if form.student_id is None:
            raise HTTPException(status_code=400, detail="student_id is required")
        holder = session.get(User, form.student_id)
        if holder is None or holder.deleted_at is not None:
            raise HTTPException(status_code=404, detail="Student not found")

    activity = None
    if form.activity_id is not None:
        activity = session.get(Activity, form.activity_id)
        if activity is None or activity.deleted_at is not None:
            raise HTTPException(status_code=404, detail="Activity not found")
        if has_role(current_user.role, [UserRole.PROFESSOR]) and activity.created_by != current_user.id:
            raise HTTPException(status_code=403, detail="You do not manage this activity")

    query = select(func.coalesce(func.sum(HoursRequest.hours), 0)).where(
        HoursRequest.user_id == holder.id,
        HoursRequest.status == HoursRequestStatus.APPROVED,
    )
    if activity is not None:
        query = query.where(HoursRequest.activity_id == activity.id)
    total_hours = float(session.exec(query).one())

    if total_hours < settings.CERTIFICATE_MIN_HOURS:
        raise HTTPException(
            status_code=400,
            detail={
                "error": f"At least {settings.CERTIFICATE_MIN_HOURS:g} approved hours are required",
                "total_hours": total_hours,
            },
        )

    certificate = Certificate(
        certificate_number=new_certificate_number(session),
        user_id=holder.id,
        activity_id=activity.id if activity else None,
        certificate_type=form.certificate_type,
        total_hours=total_hours,
    )
    session.add(certificate)
    session.commit()
    session.refresh(certificate)
    log.info("Certificate %s issued to user %s by %s", certificate.certificate_number, holder.id, current_user.id)
    return {
        "message": "Certificate generated",
        "certificate": {
            "id": certificate.id,
            "code": certificate.certificate_number,
            "type": certificate.certificate_type,
            "total_hours": certificate.total_hours,
            "issued_at": certificate.issued_at,
        },
    }
