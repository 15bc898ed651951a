"""User ORM — account that owns zero or more places.

Invariants:
    - place_ids is an ordered list of place UUIDs as strings, oldest first
    - place_ids changes only as a side effect of place create/delete
    - place_ids is reassigned, never mutated in place (JSON columns do not track mutation)
    - version increments on every write; a write based on a stale read raises StaleDataError

Design Decisions:
    - JSON column for place_ids: ordered back-reference stored as its own fact,
      independent of places.creator_id (ADR: explicit two-record transactional write)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class User(Base):
    """Place owner."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True,
    )
    place_ids: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
