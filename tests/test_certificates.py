from datetime import date

import pytest
from httpx import AsyncClient
from sqlmodel import Session, select

from campus_connect.models import (
    Certificate,
    EnrollmentStatus,
    HoursRequest,
    HoursRequestStatus,
    User,
    UserRole,
)

from .conftest import auth_headers, make_activity, make_enrollment, make_user


def approved_hours(session: Session, enrollment, hours: float):
    session.add(HoursRequest(
        enrollment_id=enrollment.id,
        user_id=enrollment.user_id,
        activity_id=enrollment.activity_id,
        hours=hours,
        date=date.today(),
        description="Ran the registration desk for the event.",
        status=HoursRequestStatus.APPROVED,
    ))
    session.commit()


@pytest.fixture
def enrollment(session: Session, professor: User, student: User):
    activity = make_activity(session, professor)
    return make_enrollment(session, student, activity, EnrollmentStatus.CONFIRMED)


@pytest.mark.asyncio
async def test_verify_requires_code(client: AsyncClient):
    response = await client.get("/api/certificates/verify")
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["CC-1234", "XX-ABCDEFGH", "CC-ABCDEFGHI", "CC-ABCD_FGH"])
async def test_verify_rejects_malformed_code(client: AsyncClient, code):
    response = await client.get("/api/certificates/verify", params={"code": code})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid certificate code format"


@pytest.mark.asyncio
async def test_verify_unknown_code(client: AsyncClient):
    response = await client.get("/api/certificates/verify", params={"code": "CC-ABCDEFGH"})
    assert response.status_code == 404
    assert response.json()["valid"] is False


@pytest.mark.asyncio
async def test_verify_known_code_is_case_insensitive(client: AsyncClient, session: Session, student: User,
                                                     enrollment):
    session.add(Certificate(certificate_number="CC-AB12CD34", user_id=student.id,
                            activity_id=enrollment.activity_id, total_hours=12))
    session.commit()

    response = await client.get("/api/certificates/verify", params={"code": "  cc-ab12cd34 "})
    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["certificate"]["code"] == "CC-AB12CD34"
    assert body["certificate"]["holder_name"] == "Sam Student"
    assert body["certificate"]["activity_title"] == "Beach clean-up day"


@pytest.mark.asyncio
async def test_verify_is_rate_limited(client: AsyncClient):
    for _ in range(30):
        response = await client.get("/api/certificates/verify", params={"code": "bad"})
        assert response.status_code == 400

    response = await client.get("/api/certificates/verify", params={"code": "CC-ABCDEFGH"})
    assert response.status_code == 429
    assert "Retry-After" in response.headers
    assert response.json()["retryAfter"] > 0


@pytest.mark.asyncio
async def test_rate_limit_is_per_ip(client: AsyncClient):
    for _ in range(30):
        await client.get("/api/certificates/verify", headers={"x-forwarded-for": "10.0.0.1"})

    blocked = await client.get("/api/certificates/verify", headers={"x-forwarded-for": "10.0.0.1, 172.16.0.1"})
    other = await client.get("/api/certificates/verify", headers={"x-forwarded-for": "10.0.0.2"})
    assert blocked.status_code == 429
    assert other.status_code == 400


@pytest.mark.asyncio
async def test_student_generates_own_certificate(client: AsyncClient, session: Session, student: User,
                                                 enrollment):
    approved_hours(session, enrollment, 6)
    approved_hours(session, enrollment, 5)

    response = await client.post("/api/certificates/generate", headers=auth_headers(student), json={})
    assert response.status_code == 201
    certificate = response.json()["certificate"]
    assert certificate["total_hours"] == 11
    assert certificate["code"].startswith("CC-")

    stored = session.exec(select(Certificate)).one()
    assert stored.user_id == student.id

    verify = await client.get("/api/certificates/verify", params={"code": certificate["code"]})
    assert verify.status_code == 200


@pytest.mark.asyncio
async def test_generate_needs_minimum_hours(client: AsyncClient, session: Session, student: User, enrollment):
    approved_hours(session, enrollment, 4)

    response = await client.post("/api/certificates/generate", headers=auth_headers(student), json={})
    assert response.status_code == 400
    assert response.json()["total_hours"] == 4


@pytest.mark.asyncio
async def test_student_cannot_target_other_student(client: AsyncClient, session: Session, student: User):
    other = make_user(session, "other@example.com")
    response = await client.post("/api/certificates/generate", headers=auth_headers(student),
                                 json={"student_id": other.id})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_professor_generates_for_student(client: AsyncClient, session: Session, professor: User,
                                               student: User, enrollment):
    approved_hours(session, enrollment, 10)

    response = await client.post("/api/certificates/generate", headers=auth_headers(professor), json={
        "student_id": student.id, "activity_id": enrollment.activity_id, "certificate_type": "completion",
    })
    assert response.status_code == 201
    assert response.json()["certificate"]["type"] == "completion"

    other = make_user(session, "other.prof@example.com", UserRole.PROFESSOR)
    response = await client.post("/api/certificates/generate", headers=auth_headers(other), json={
        "student_id": student.id, "activity_id": enrollment.activity_id,
    })
    assert response.status_code == 403
