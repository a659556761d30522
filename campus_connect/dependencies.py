from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from .config import settings
from .db import get_session
from .models import User
from .permissions import has_role, normalize_role
from .security import decode_access_token


def _token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_optional_user(request: Request, session: Session = Depends(get_session)) -> Optional[User]:
    """Resolves the caller from a bearer token or the auth cookie."""
    token = _token_from_request(request)
    if not token:
        return None

    claims = decode_access_token(token)
    if claims is None:
        return None

    user = session.get(User, claims.user_id)
    if not user or not user.is_active or user.deleted_at is not None:
        return None
    # Tokens issued before a role change no longer authenticate
    if normalize_role(user.role) != claims.role:
        return None
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Dependency that ensures a user is authenticated."""
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(*roles: str):
    """Dependency factory that ensures a user has one of the required roles."""
    def role_checker(user: User = Depends(get_current_user)) -> User:
        if not has_role(user.role, roles):
            raise HTTPException(status_code=403, detail="Permission denied")
        return user
    return role_checker


def client_ip(request: Request) -> str:
    """Best-effort client address, honouring common proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
