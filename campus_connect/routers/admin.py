import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlmodel import Session, select

from ..db import get_session
from ..dependencies import require_role
from ..models import User, UserRole
from ..permissions import normalize_role
from ..schemas.user import BulkUserAction, RoleUpdate, UserRead
from ..services.rate_limit import admin_bulk_limiter, rate_limited
from ..utils.clock import utcnow

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

admin_required = require_role(UserRole.ADMIN)


@router.get("/users")
def list_users(
    q: str = "",
    role: str = "",
    limit: int = 50,
    offset: int = 0,
    current_user: User = Depends(admin_required),
    session: Session = Depends(get_session),
):
    limit = max(1, min(limit, 100))
    offset = max(0, offset)
    query = select(User).where(User.deleted_at == None)  # noqa: E711

    if q:
        like = f"%{q}%"
        query = query.where(
            or_(
                User.email.ilike(like),
                User.first_name.ilike(like),
                User.last_name.ilike(like),
            )
        )
    if role:
        query = query.where(func.upper(User.role) == normalize_role(role))

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    users = session.exec(query.order_by(User.created_at.desc()).offset(offset).limit(limit)).all()
    return {
        "users": [UserRead.model_validate(u) for u in users],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.patch("/users/{user_id}/role")
def update_role(
    user_id: int,
    form: RoleUpdate,
    current_user: User = Depends(admin_required),
    session: Session = Depends(get_session),
):
    target = session.get(User, user_id)
    if target is None or target.deleted_at is not None:
        raise HTTPException(status_code=404, detail="User not found")

    previous_role = normalize_role(target.role)
    new_role = form.role.value
    if target.id == current_user.id and previous_role == UserRole.ADMIN.value and new_role != UserRole.ADMIN.value:
        raise HTTPException(status_code=400, detail="You cannot remove your own administrator role")

    target.role = new_role
    target.updated_at = utcnow()
    session.add(target)
    session.commit()
    log.info("Admin %s changed role of user %s from %s to %s", current_user.id, target.id, previous_role, new_role)

    return {
        "message": "Role updated",
        "user": {"id": target.id, "previousRole": previous_role, "newRole": new_role},
    }


@router.post("/users/bulk", dependencies=[Depends(rate_limited(admin_bulk_limiter))])
def bulk_user_action(
    form: BulkUserAction,
    current_user: User = Depends(admin_required),
    session: Session = Depends(get_session),
):
    """Change the role of, or deactivate, several accounts at once."""
    if form.action == "change_role" and form.new_role is None:
        raise HTTPException(status_code=400, detail="new_role is required to change roles")
    if current_user.id in form.user_ids:
        raise HTTPException(status_code=400, detail="You cannot modify your own account with a bulk action")

    success, errors = 0, []
    stamp = utcnow()
    for user_id in dict.fromkeys(form.user_ids):
        target = session.get(User, user_id)
        if target is None or target.deleted_at is not None:
            errors.append(f"User {user_id} not found")
            continue

        previous_role = normalize_role(target.role)
        if form.action == "change_role":
            if previous_role != form.new_role.value:
                target.role = form.new_role.value
                target.updated_at = stamp
                log.info("Admin %s changed role of user %s from %s to %s (bulk)",
                         current_user.id, target.id, previous_role, form.new_role.value)
        elif target.is_active:
            target.is_active = False
            target.updated_at = stamp
            log.info("Admin %s deactivated user %s (bulk)", current_user.id, target.id)
        session.add(target)
        success += 1

    session.commit()
    log.info("Admin %s ran bulk %s: %s succeeded, %s failed", current_user.id, form.action, success, len(errors))
    body = {"message": "Bulk action completed", "results": {"success": success, "failed": len(errors)}}
    if errors:
        body["errors"] = errors
    return body
