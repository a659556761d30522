from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlmodel import Session, select

from ..db import get_session
from ..dependencies import get_current_user, require_role
from ..models import Activity, ActivityStatus, Enrollment, EnrollmentStatus, User, UserRole
from ..schemas.activity import ActivityCreate, ActivityRead, ActivityStatusUpdate
from ..services.enrollments import get_owned_activity
from ..utils.clock import utcnow

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_activity(
    form: ActivityCreate,
    current_user: User = Depends(require_role(UserRole.PROFESSOR)),
    session: Session = Depends(get_session),
):
    activity = Activity(
        title=form.title,
        description=form.description,
        category=form.category,
        location=form.location,
        eligibility_criteria=form.eligibility_criteria or None,
        max_participants=form.max_participants,
        current_participants=0,
        date=form.date,
        start_time=form.start_time,
        end_time=form.end_time,
        status=form.status or ActivityStatus.OPEN,
        created_by=current_user.id,
    )
    session.add(activity)
    session.commit()
    session.refresh(activity)
    return {"message": "Activity created", "id": activity.id, "title": activity.title}


@router.get("")
def list_activities(
    status: Optional[ActivityStatus] = None,
    category: Optional[str] = None,
    q: str = "",
    limit: int = 20,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    limit = max(1, min(limit, 100))
    offset = max(0, offset)
    query = select(Activity).where(Activity.deleted_at == None)  # noqa: E711
    if status:
        query = query.where(Activity.status == status)
    if category:
        query = query.where(Activity.category == category)
    if q:
        query = query.where(Activity.title.ilike(f"%{q}%"))

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    activities = session.exec(
        query.order_by(Activity.date.asc(), Activity.start_time.asc()).offset(offset).limit(limit)
    ).all()
    return {
        "activities": [ActivityRead.model_validate(a) for a in activities],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/{activity_id}", response_model=ActivityRead)
def get_activity(
    activity_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return get_owned_activity(session, activity_id, current_user, "You cannot view this activity")


@router.patch("/{activity_id}/status")
def update_status(
    activity_id: int,
    form: ActivityStatusUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activity = get_owned_activity(session, activity_id, current_user)
    if not activity.can_transition_to(form.status):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change status from {activity.status.value} to {form.status.value}",
        )

    activity.status = form.status
    activity.updated_at = utcnow()
    session.add(activity)
    session.commit()
    session.refresh(activity)
    return {"message": "Status updated", "activity": ActivityRead.model_validate(activity)}


@router.get("/{activity_id}/applications")
def list_applications(
    activity_id: int,
    status: Optional[EnrollmentStatus] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activity = get_owned_activity(session, activity_id, current_user)
    query = (
        select(Enrollment, User)
        .join(User, User.id == Enrollment.user_id)
        .where(Enrollment.activity_id == activity.id, Enrollment.deleted_at == None)  # noqa: E711
    )
    if status:
        query = query.where(Enrollment.status == status)

    rows = session.exec(query.order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())).all()
    return {
        "applications": [
            {
                "id": enrollment.id,
                "status": enrollment.status,
                "motivation": enrollment.motivation,
                "availability": enrollment.availability,
                "experience": enrollment.experience,
                "professor_notes": enrollment.professor_notes,
                "rejection_reason": enrollment.rejection_reason,
                "enrolled_at": enrollment.enrolled_at,
                "reviewed_at": enrollment.reviewed_at,
                "student": {
                    "id": student.id,
                    "name": student.full_name,
                    "email": student.email,
                    "faculty": student.faculty,
                    "year": student.year,
                },
            }
            for enrollment, student in rows
        ],
        "total": len(rows),
    }
