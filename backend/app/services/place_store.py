"""Place Store — SQLAlchemy persistence for the places table.

Invariants:
    - Methods flush, never commit (transaction boundary belongs to PlaceWorkflow)
    - SQLAlchemy errors propagate unchanged

Design Decisions:
    - get_with_creator uses selectinload: the creator join is opt-in (Place.creator is lazy="raise")
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.domain_types import PlaceId
from app.models.place import Place


class SqlPlaceStore:
    """PlaceStore implementation over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, place_id: PlaceId) -> Place | None:
        result = await self.db.execute(
            select(Place).where(Place.id == place_id),
        )
        return result.scalar_one_or_none()

    async def get_with_creator(self, place_id: PlaceId) -> Place | None:
        """Place with its owning User loaded (populated creator)."""
        result = await self.db.execute(
            select(Place)
            .where(Place.id == place_id)
            .options(selectinload(Place.creator)),
        )
        return result.scalar_one_or_none()

    async def add(self, place: Place) -> None:
        self.db.add(place)
        await self.db.flush()

    async def save(self, place: Place) -> None:
        self.db.add(place)
        await self.db.flush()

    async def remove(self, place: Place) -> None:
        await self.db.delete(place)
        await self.db.flush()
