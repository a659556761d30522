from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=120)]


class RegisterForm(BaseModel):
    email: Annotated[str, StringConstraints(strip_whitespace=True, max_length=255,
                                            pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]
    first_name: Name
    last_name: Name
    # Passwords are taken verbatim
    password: str = Field(min_length=8, max_length=128)


class LoginForm(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
