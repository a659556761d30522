from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session, select

from ..config import settings
from ..db import get_session
from ..models import User, UserRole
from ..schemas.auth import LoginForm, RegisterForm, TokenResponse
from ..schemas.user import UserRead
from ..security import create_access_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(form: RegisterForm, session: Session = Depends(get_session)):
    email = form.email.lower()
    if session.exec(select(User).where(User.email == email)).first():
        raise HTTPException(status_code=400, detail="An account with this email already exists")

    # Self-registration always creates students; roles are granted by an admin.
    user = User(
        email=email,
        first_name=form.first_name,
        last_name=form.last_name,
        role=UserRole.STUDENT.value,
    )
    user.set_password(form.password)
    session.add(user)
    session.commit()
    session.refresh(user)
    return {"message": "Account created", "user": UserRead.model_validate(user)}


@router.post("/login", response_model=TokenResponse)
def login(form: LoginForm, response: Response, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == form.email.lower().strip())).first()
    if not user or not user.is_active or user.deleted_at is not None or not user.check_password(form.password):
        raise HTTPException(status_code=401, detail="Incorrect email or password")

    # check_password may have upgraded a legacy hash
    if session.is_modified(user):
        session.add(user)
        session.commit()

    token = create_access_token(user.id, user.role)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return TokenResponse(access_token=token)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"message": "Logged out"}
