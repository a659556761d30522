import pytest
from httpx import AsyncClient
from sqlmodel import Session

from campus_connect.models import Notification, NotificationType, User
from campus_connect.services.notifications import notify

from .conftest import auth_headers, make_user


def seed_notifications(session: Session, user: User, count: int):
    for i in range(count):
        notify(session, user.id, NotificationType.GENERAL, f"Notice {i}", "Something happened")
    session.commit()


@pytest.mark.asyncio
async def test_list_notifications(client: AsyncClient, session: Session, student: User):
    seed_notifications(session, student, 3)
    notify(session, student.id, NotificationType.HOURS_APPROVED, "Hours approved", "2 hours approved")
    session.commit()

    response = await client.get("/api/notifications", headers=auth_headers(student))
    body = response.json()
    assert body["total"] == 4
    assert body["unread_count"] == 4

    response = await client.get("/api/notifications?type=HOURS_APPROVED", headers=auth_headers(student))
    assert [n["title"] for n in response.json()["notifications"]] == ["Hours approved"]

    response = await client.get("/api/notifications?limit=2&offset=1", headers=auth_headers(student))
    assert len(response.json()["notifications"]) == 2


@pytest.mark.asyncio
async def test_read_all_reports_count(client: AsyncClient, session: Session, student: User):
    seed_notifications(session, student, 3)
    other = make_user(session, "other@example.com")
    seed_notifications(session, other, 2)

    response = await client.patch("/api/notifications/read-all", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["updated_count"] == 3

    response = await client.get("/api/notifications?unread_only=true", headers=auth_headers(student))
    assert response.json()["total"] == 0
    assert response.json()["unread_count"] == 0

    response = await client.get("/api/notifications", headers=auth_headers(other))
    assert response.json()["unread_count"] == 2

    response = await client.patch("/api/notifications/read-all", headers=auth_headers(student))
    assert response.json()["updated_count"] == 0


@pytest.mark.asyncio
async def test_mark_single_read(client: AsyncClient, session: Session, student: User):
    notification = notify(session, student.id, NotificationType.GENERAL, "Hi", "Welcome")
    session.commit()

    response = await client.patch(f"/api/notifications/{notification.id}/read", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["notification"]["is_read"] is True
    assert response.json()["notification"]["read_at"] is not None


@pytest.mark.asyncio
async def test_notifications_are_private(client: AsyncClient, session: Session, student: User):
    notification = notify(session, student.id, NotificationType.GENERAL, "Hi", "Welcome")
    session.commit()
    other = make_user(session, "other@example.com")

    assert (await client.get(f"/api/notifications/{notification.id}", headers=auth_headers(other))).status_code == 404
    assert (await client.patch(f"/api/notifications/{notification.id}/read",
                               headers=auth_headers(other))).status_code == 404
    assert (await client.delete(f"/api/notifications/{notification.id}",
                                headers=auth_headers(other))).status_code == 404
    assert (await client.get(f"/api/notifications/{notification.id}",
                             headers=auth_headers(student))).status_code == 200


@pytest.mark.asyncio
async def test_delete_notification(client: AsyncClient, session: Session, student: User):
    notification = notify(session, student.id, NotificationType.GENERAL, "Hi", "Welcome")
    session.commit()
    notification_id = notification.id

    response = await client.delete(f"/api/notifications/{notification_id}", headers=auth_headers(student))
    assert response.status_code == 200
    assert session.get(Notification, notification_id) is None
