from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String
from videotube.core.database import Base, TimestampMixin
from uuid import UUID, uuid4

class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4, index=True)
    username: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String, index=True)
    password_hash: Mapped[str] = mapped_column(String)
    avatar: Mapped[str] = mapped_column(String)
    avatar_public_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String, nullable=True)
    cover_image_public_id: Mapped[str | None] = mapped_column(String, nullable=True)
    # Only one refresh token is valid per user; NULL means no active session.
    refresh_token: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
