"""User Store — SQLAlchemy access to users and their ordered place ids.

Invariants:
    - place_ids is always reassigned as a new list so the JSON column is marked dirty
    - get_with_places returns places in place_ids order; ids with no row are skipped
    - Methods flush, never commit
    - A flush against a user row changed by another transaction since it was read
      raises StaleDataError (User.version); the caller's transaction is then discarded

Design Decisions:
    - Population is a second IN query rather than a join: User.places is a stored list,
      not a relationship
    - get(lock=True) takes SELECT ... FOR UPDATE on backends that support it and
      refreshes an already-loaded user, so writers queue instead of racing
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import PlaceId, UserId
from app.models.place import Place
from app.models.user import User


class SqlUserStore:
    """UserStore implementation over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UserId, lock: bool = False) -> User | None:
        stmt = select(User).where(User.id == user_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(
                populate_existing=True,
            )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_places(
        self, user_id: UserId,
    ) -> tuple[User | None, list[Place]]:
        """User plus its places resolved in ownership order."""
        user = await self.get(user_id)
        if user is None or not user.place_ids:
            return user, []

        result = await self.db.execute(
            select(Place).where(
                Place.id.in_([UUID(pid) for pid in user.place_ids]),
            ),
        )
        by_id = {str(p.id): p for p in result.scalars().all()}
        return user, [by_id[pid] for pid in user.place_ids if pid in by_id]

    async def attach_place(self, user: User, place_id: PlaceId) -> None:
        user.place_ids = [*user.place_ids, str(place_id)]
        await self.db.flush()

    async def detach_place(self, user: User, place_id: PlaceId) -> None:
        user.place_ids = [
            pid for pid in user.place_ids if pid != str(place_id)
        ]
        await self.db.flush()
