from datetime import date, time, timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from campus_connect.main import app
from campus_connect.db import get_session
from campus_connect.models import Activity, Enrollment, EnrollmentStatus, User, UserRole
from campus_connect.security import create_access_token
from campus_connect.services import rate_limit
from campus_connect.services.email import EmailResult, get_email_sender

DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)


class FakeEmailSender:
    """Records messages instead of calling the email API."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, to, subject, body_html):
        if self.fail:
            raise RuntimeError("email provider unavailable")
        self.sent.append({"to": to, "subject": subject, "html": body_html})
        return EmailResult(True)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    for limiter in (
        rate_limit.enroll_limiter,
        rate_limit.admin_bulk_limiter,
        rate_limit.certificate_verify_limiter,
        rate_limit.certificate_generate_limiter,
    ):
        limiter.reset()
    yield


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="email_sender")
def email_sender_fixture():
    return FakeEmailSender()


@pytest.fixture(name="client")
def client_fixture(session: Session, email_sender: FakeEmailSender):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()


def make_user(session: Session, email: str, role: UserRole = UserRole.STUDENT,
              first_name: str = "Test", last_name: str = "User", password: str = "password123") -> User:
    user = User(email=email, first_name=first_name, last_name=last_name, role=role.value)
    user.set_password(password)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


def make_activity(session: Session, owner: User, max_participants: int = 10,
                  starts_in: timedelta = timedelta(days=7), **overrides) -> Activity:
    start = date.today() + starts_in
    activity = Activity(
        title=overrides.pop("title", "Beach clean-up day"),
        description="Help us clean the city beach and sort the collected waste for recycling.",
        category=overrides.pop("category", "environment"),
        location="City beach, north entrance",
        max_participants=max_participants,
        created_by=owner.id,
        date=start,
        start_time=time(9, 0),
        end_time=time(12, 0),
        **overrides,
    )
    session.add(activity)
    session.commit()
    session.refresh(activity)
    return activity


def make_enrollment(session: Session, student: User, activity: Activity,
                    status: EnrollmentStatus = EnrollmentStatus.PENDING) -> Enrollment:
    enrollment = Enrollment(
        user_id=student.id,
        activity_id=activity.id,
        status=status,
        motivation="I want to help",
        availability="Weekends",
    )
    if status == EnrollmentStatus.CONFIRMED:
        activity.current_participants += 1
        session.add(activity)
    session.add(enrollment)
    session.commit()
    session.refresh(enrollment)
    return enrollment


@pytest.fixture
def professor(session: Session) -> User:
    return make_user(session, "prof@example.com", UserRole.PROFESSOR, first_name="Ada", last_name="Lovelace")


@pytest.fixture
def student(session: Session) -> User:
    return make_user(session, "student@example.com", UserRole.STUDENT, first_name="Sam", last_name="Student")


@pytest.fixture
def admin(session: Session) -> User:
    return make_user(session, "admin@example.com", UserRole.ADMIN, first_name="Admin", last_name="User")
