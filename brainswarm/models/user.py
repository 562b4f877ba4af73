"""
Brainswarm Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table (accounts).
Who:   AuthService (register/login), EntryService (author block of entries),
       TeamService (founder block of teams).

Users join teams through the `team_user` membership table; a user may be an
admin in one team and a plain member in another.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from brainswarm.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Login identifier, stored lower-cased",
    )

    # passlib hash string (pbkdf2_sha256); never serialized
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    nickname: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Default for the `anonymous` flag of this user's new entries
    anonymous: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
