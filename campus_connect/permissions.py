"""Role and ownership checks shared by every mutating route."""
from typing import Iterable, Optional

from .errors import PermissionDeniedError


def normalize_role(role: Optional[str]) -> Optional[str]:
    if role is None:
        return None
    value = getattr(role, "value", role)
    return str(value).strip().upper() or None


def has_role(caller_role: Optional[str], roles: Iterable[str]) -> bool:
    wanted = {normalize_role(r) for r in roles}
    return normalize_role(caller_role) in wanted


def is_allowed(
    caller_role: Optional[str],
    caller_id: Optional[int],
    owner_id: Optional[int] = None,
    roles: Optional[Iterable[str]] = None,
) -> bool:
    """Return True when the caller holds one of ``roles`` and, if ``owner_id`` is
    given, is that owner. Admins get no implicit ownership."""
    if caller_id is None:
        return False
    if roles is not None and not has_role(caller_role, roles):
        return False
    if owner_id is not None and caller_id != owner_id:
        return False
    return True


def ensure_allowed(
    caller_role: Optional[str],
    caller_id: Optional[int],
    owner_id: Optional[int] = None,
    roles: Optional[Iterable[str]] = None,
    message: str = "Permission denied",
) -> None:
    if not is_allowed(caller_role, caller_id, owner_id=owner_id, roles=roles):
        raise PermissionDeniedError(message)
