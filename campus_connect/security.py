"""Password hashing and the signed access tokens issued at login.

A token carries the user id in ``sub`` and the role the user held when it was
issued. The role claim is checked against the stored role on every request, so
a role change by an administrator invalidates tokens issued before it.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings
from .permissions import normalize_role

# argon2 for new hashes; bcrypt hashes from older accounts still verify and get upgraded
pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_and_update_password(password: str, hashed_password: str) -> Tuple[bool, Optional[str]]:
    """Verify a password and return a replacement hash when the stored one is on a deprecated scheme."""
    return pwd_context.verify_and_update(password, hashed_password)


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": str(user_id), "role": normalize_role(role), "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenClaims]:
    """Returns the token's claims, or None when it is invalid, expired or incomplete."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    role = normalize_role(payload.get("role"))
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    if role is None:
        return None
    return TokenClaims(user_id=user_id, role=role)
