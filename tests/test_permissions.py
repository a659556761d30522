import pytest

from campus_connect.errors import PermissionDeniedError
from campus_connect.models import UserRole
from campus_connect.permissions import ensure_allowed, has_role, is_allowed, normalize_role


def test_normalize_role_is_case_insensitive():
    assert normalize_role("professor") == "PROFESSOR"
    assert normalize_role(" Admin ") == "ADMIN"
    assert normalize_role(UserRole.STUDENT) == "STUDENT"
    assert normalize_role(None) is None
    assert normalize_role("") is None


def test_has_role_mixes_enum_and_strings():
    assert has_role("admin", [UserRole.ADMIN])
    assert has_role("PROFESSOR", ["professor", "admin"])
    assert not has_role("STUDENT", [UserRole.PROFESSOR])
    assert not has_role(None, [UserRole.STUDENT])


def test_owner_check():
    assert is_allowed("PROFESSOR", 5, owner_id=5)
    assert not is_allowed("PROFESSOR", 5, owner_id=6)


def test_admin_is_not_implicit_owner():
    assert not is_allowed("ADMIN", 1, owner_id=2)


def test_role_and_owner_both_required():
    assert is_allowed("professor", 3, owner_id=3, roles=[UserRole.PROFESSOR])
    assert not is_allowed("STUDENT", 3, owner_id=3, roles=[UserRole.PROFESSOR])


def test_anonymous_caller_denied():
    assert not is_allowed("ADMIN", None)


def test_ensure_allowed_raises_with_message():
    with pytest.raises(PermissionDeniedError) as exc:
        ensure_allowed("STUDENT", 1, owner_id=2, message="Not yours")
    assert exc.value.message == "Not yours"
    assert exc.value.status_code == 403
