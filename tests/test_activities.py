from datetime import date, timedelta

import pytest
from httpx import AsyncClient
from sqlmodel import Session, select

from campus_connect.models import Activity, ActivityStatus, EnrollmentStatus, User, UserRole

from .conftest import auth_headers, make_activity, make_enrollment, make_user


def activity_payload(**overrides):
    payload = {
        "title": "Food bank weekend shift",
        "description": "Sort donations, pack parcels and help run the distribution desk at the food bank.",
        "category": "social",
        "location": "Community hall, room 2",
        "max_participants": 12,
        "date": (date.today() + timedelta(days=10)).isoformat(),
        "start_time": "09:00",
        "end_time": "13:00",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_professor_creates_activity(client: AsyncClient, session: Session, professor: User):
    response = await client.post("/api/activities", headers=auth_headers(professor), json=activity_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Food bank weekend shift"

    activity = session.get(Activity, body["id"])
    assert activity.created_by == professor.id
    assert activity.status == ActivityStatus.OPEN
    assert activity.current_participants == 0


@pytest.mark.asyncio
async def test_student_cannot_create_activity(client: AsyncClient, student: User):
    response = await client.post("/api/activities", headers=auth_headers(student), json=activity_payload())
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_activity_validates_times_and_capacity(client: AsyncClient, professor: User):
    response = await client.post("/api/activities", headers=auth_headers(professor),
                                 json=activity_payload(start_time="14:00", end_time="10:00"))
    assert response.status_code == 400

    response = await client.post("/api/activities", headers=auth_headers(professor),
                                 json=activity_payload(max_participants=501))
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "max_participants"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"title": "X" + " " * 20},
    {"description": "ok" + " " * 30},
])
async def test_create_activity_padding_does_not_count_toward_length(client: AsyncClient, session: Session,
                                                                   professor: User, overrides):
    response = await client.post("/api/activities", headers=auth_headers(professor),
                                 json=activity_payload(**overrides))
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == next(iter(overrides))
    assert session.exec(select(Activity)).all() == []


@pytest.mark.asyncio
async def test_create_activity_stores_trimmed_text(client: AsyncClient, session: Session, professor: User):
    response = await client.post("/api/activities", headers=auth_headers(professor),
                                 json=activity_payload(title="  Food bank weekend shift  "))
    assert response.status_code == 201
    assert session.get(Activity, response.json()["id"]).title == "Food bank weekend shift"


@pytest.mark.asyncio
async def test_list_activities_filters_and_paginates(client: AsyncClient, session: Session,
                                                     professor: User, student: User):
    make_activity(session, professor, title="Beach clean-up day")
    make_activity(session, professor, title="Library reading hour", category="education")
    make_activity(session, professor, title="Old cancelled event", status=ActivityStatus.CANCELLED)

    response = await client.get("/api/activities?limit=2", headers=auth_headers(student))
    body = response.json()
    assert body["total"] == 3
    assert len(body["activities"]) == 2
    assert body["limit"] == 2

    response = await client.get("/api/activities?category=education", headers=auth_headers(student))
    assert [a["title"] for a in response.json()["activities"]] == ["Library reading hour"]

    response = await client.get("/api/activities?status=CANCELLED", headers=auth_headers(student))
    assert response.json()["total"] == 1

    response = await client.get("/api/activities?q=beach", headers=auth_headers(student))
    assert response.json()["total"] == 1

    response = await client.get("/api/activities?limit=500", headers=auth_headers(student))
    assert response.json()["limit"] == 100


@pytest.mark.asyncio
async def test_get_activity_owner_only(client: AsyncClient, session: Session, professor: User):
    activity = make_activity(session, professor)
    other = make_user(session, "other.prof@example.com", UserRole.PROFESSOR)

    assert (await client.get(f"/api/activities/{activity.id}", headers=auth_headers(professor))).status_code == 200
    assert (await client.get(f"/api/activities/{activity.id}", headers=auth_headers(other))).status_code == 403
    assert (await client.get("/api/activities/9999", headers=auth_headers(professor))).status_code == 404


@pytest.mark.asyncio
async def test_soft_deleted_activity_is_hidden(client: AsyncClient, session: Session, professor: User):
    activity = make_activity(session, professor)
    activity.deleted_at = activity.created_at
    session.add(activity)
    session.commit()

    assert (await client.get(f"/api/activities/{activity.id}", headers=auth_headers(professor))).status_code == 404
    assert (await client.get("/api/activities", headers=auth_headers(professor))).json()["total"] == 0


@pytest.mark.asyncio
async def test_status_transitions(client: AsyncClient, session: Session, professor: User):
    activity = make_activity(session, professor)
    url = f"/api/activities/{activity.id}/status"

    response = await client.patch(url, headers=auth_headers(professor), json={"status": "COMPLETED"})
    assert response.status_code == 400

    response = await client.patch(url, headers=auth_headers(professor), json={"status": "IN_PROGRESS"})
    assert response.status_code == 200
    assert response.json()["activity"]["status"] == "IN_PROGRESS"

    response = await client.patch(url, headers=auth_headers(professor), json={"status": "COMPLETED"})
    assert response.status_code == 200

    response = await client.patch(url, headers=auth_headers(professor), json={"status": "CANCELLED"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_status_change_requires_owner(client: AsyncClient, session: Session, professor: User, admin: User):
    activity = make_activity(session, professor)
    response = await client.patch(f"/api/activities/{activity.id}/status", headers=auth_headers(admin),
                                  json={"status": "CANCELLED"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_applications(client: AsyncClient, session: Session, professor: User, student: User):
    activity = make_activity(session, professor)
    make_enrollment(session, student, activity)
    other = make_user(session, "second@example.com", first_name="Second", last_name="Student")
    make_enrollment(session, other, activity, EnrollmentStatus.CONFIRMED)

    response = await client.get(f"/api/activities/{activity.id}/applications", headers=auth_headers(professor))
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["applications"][0]["student"]["email"] == "student@example.com"

    response = await client.get(f"/api/activities/{activity.id}/applications?status=CONFIRMED",
                                headers=auth_headers(professor))
    assert [a["student"]["name"] for a in response.json()["applications"]] == ["Second Student"]

    response = await client.get(f"/api/activities/{activity.id}/applications", headers=auth_headers(student))
    assert response.status_code == 403
