"""
Brainswarm Backend — Entry SQLAlchemy Model
============================================

What:  ORM model for the `entries` table: one submitted improvement idea.

Lifecycle:
    1. Created by a team member; final_prio computed by the priority engine
    2. Updated by its creator or a team admin; final_prio recomputed when a
       priority field changes
    3. Soft-deleted (deleted_at set) by creator or admin
    4. Restored (deleted_at cleared) by creator or admin
    5. Permanently deleted by a team admin

Query Patterns:
    - Team ranking: WHERE team_id = :t AND deleted_at IS NULL ORDER BY final_prio DESC
      → idx_entries_team_prio
    - Trash: WHERE team_id = :t AND deleted_at IS NOT NULL ORDER BY deleted_at DESC
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from brainswarm.core.priority import Effort
from brainswarm.database import Base
from brainswarm.models.user import utcnow


class Entry(Base):
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    problem: Mapped[str] = mapped_column(Text, nullable=False)
    solution: Mapped[str] = mapped_column(Text, nullable=False)
    area: Mapped[str] = mapped_column(String(255), nullable=False)

    # Hours per year; NULL excludes the entry from the computed priority term
    time_saved_per_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gross_profit_per_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    effort: Mapped[Effort] = mapped_column(
        Enum(
            Effort,
            name="entry_effort",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )

    monetary_explanation: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # Hides the author block in API responses
    anonymous: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    manual_override_prio: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    # Derived; only ever written from core.priority.compute_priority
    final_prio: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
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

    # Soft-delete marker; NULL means live
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        Index("idx_entries_team_prio", "team_id", "final_prio"),
    )

    def __repr__(self) -> str:
        return (
            f"<Entry(id={self.id}, team_id={self.team_id}, "
            f"final_prio={self.final_prio})>"
        )
