from datetime import datetime
from uuid import UUID
from pydantic import EmailStr, field_validator
from videotube.schemas.common import CamelModel


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("All fields are required")
    return value


class UserCreate(CamelModel):
    full_name: str
    email: EmailStr
    username: str
    password: str

    @field_validator("full_name", "username", mode="before")
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _require_text(value) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _require_text(value).lower() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        _require_text(value)
        return value


class LoginRequest(CamelModel):
    username: str | None = None
    email: str | None = None
    password: str


class PasswordChange(CamelModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("New password is required")
        return value


class UserUpdate(CamelModel):
    full_name: str
    email: EmailStr

    @field_validator("full_name", mode="before")
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        return _require_text(value) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _require_text(value).lower() if isinstance(value, str) else value


class UserResponse(CamelModel):
    id: UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChannelProfile(CamelModel):
    full_name: str
    username: str
    email: str
    avatar: str
    cover_image: str | None = None
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool
