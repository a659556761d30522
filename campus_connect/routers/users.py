from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..db import get_session
from ..dependencies import get_current_user
from ..models import User
from ..schemas.user import ProfileUpdate, UserRead
from ..utils.clock import utcnow

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me")
def update_me(form: ProfileUpdate, current_user: User = Depends(get_current_user),
              session: Session = Depends(get_session)):
    for field, value in form.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    current_user.updated_at = utcnow()
    session.add(current_user)
    session.commit()
    session.refresh(current_user)
    return {"message": "Profile updated", "profile": UserRead.model_validate(current_user)}
