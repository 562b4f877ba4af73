"""
Brainswarm Backend — Team SQLAlchemy Model
===========================================

What:  ORM model for the `teams` table, the tenant boundary.

Table Design:
    - team_code: unique, human-chosen code for "join by code"
    - invite_token / invite_expires_at: current shareable invite link;
      a NULL expiry never expires
    - founder_user_id: the member who created the team; never demoted and
      cannot leave
    - settings: open JSON object (allow_anonymous_entries, require_approval, ...)

Deleting a team cascades to `team_user` and `entries` (ON DELETE CASCADE).
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from brainswarm.database import Base
from brainswarm.models.user import utcnow


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    team_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )

    invite_token: Mapped[Optional[str]] = mapped_column(
        String(128),
        unique=True,
        index=True,
        nullable=True,
    )

    invite_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # RESTRICT: a founder account cannot be removed while the team exists
    founder_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    settings: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

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
        return f"<Team(id={self.id}, team_code='{self.team_code}')>"
