"""Place ORM — a location record owned by exactly one user.

Invariants:
    - id is UUID primary key (client-side default, available after flush)
    - lat/lng are set once at creation from geocoding and never updated
    - image and creator_id are set once at creation and never updated
    - creator_id appears in the owner's users.place_ids (maintained by PlaceWorkflow)

Design Decisions:
    - creator relationship is lazy="raise": the workflow must ask for the join explicitly
      (ADR: no implicit IO in async context)
    - No ORM cascade between Place and User: the back-reference is written explicitly
      inside the create/delete transaction
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Float, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import Coordinates
from app.db.base import Base


class Place(Base):
    """Shared place with geocoded location and an uploaded image."""
    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    image: Mapped[str] = mapped_column(String(500), nullable=False)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    creator: Mapped["User"] = relationship("User", lazy="raise")

    @property
    def location(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)
