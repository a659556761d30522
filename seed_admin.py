import os

from sqlmodel import Session, select

from campus_connect.db import engine, init_db
from campus_connect.models import User, UserRole


def create_admin_user(email: str, password: str) -> bool:
    """
    Creates an administrator account if the email is not already registered.
    Returns True when a new user was created.
    """
    init_db()
    with Session(engine) as session:
        if session.exec(select(User).where(User.email == email)).first():
            print(f"User {email} already exists.")
            return False

        print("Creating admin user...")
        admin_user = User(first_name="Admin", last_name="User", email=email, role=UserRole.ADMIN.value)
        admin_user.set_password(password)
        session.add(admin_user)
        session.commit()
        print("Admin user created successfully.")
        return True


if __name__ == "__main__":
    create_admin_user(
        os.environ.get("ADMIN_EMAIL", "admin@campusconnect.local"),
        os.environ.get("ADMIN_PASSWORD", "change-me-now"),
    )
