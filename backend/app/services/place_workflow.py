"""Place Workflow — create, read, update and delete of places with ownership checks.

Invariants:
    - Place.creator_id and User.place_ids are written in the same transaction on create
      and delete; a failure before commit leaves neither change visible
    - The owning user row is re-read with a lock before place_ids is rewritten; a
      concurrent change to it makes the commit fail (InternalError), never lose an id
    - The workflow never calls rollback: an uncommitted session is discarded when the
      request session closes (infrastructure/database.py)
    - Geocoding runs before any write, so a GeocodeError never leaves partial state
    - Only the creator may update or delete a place (401 otherwise)
    - Storage errors are logged with their cause and surface as InternalError (500)
    - Image removal after a committed delete is best effort and never fails the request

Design Decisions:
    - Owner-read returns 404 both for an unknown user and for a user with no places
      (ADR: preserves the existing client contract)
    - Update checks for a missing place explicitly and returns 404
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import PlaceId, UserId
from app.core.errors import (
    ErrorContext, InternalError, ResourceNotFoundError, UnauthorizedError,
)
from app.core.repository_protocols import (
    GeocodeClient, ImageRemover, PlaceStore, UserStore,
)
from app.models.place import Place
from app.schemas.place import PlaceCreate, PlaceUpdate
from app.services.place_store import SqlPlaceStore
from app.services.user_store import SqlUserStore

logger = logging.getLogger(__name__)


def _storage_failure(
    message: str, operation: str, cause: Exception, **ids: object,
) -> InternalError:
    """Log a storage error with its cause and build the 500 raised to the caller."""
    logger.error(
        f"{operation} failed: {cause}",
        exc_info=cause,
        extra={"operation": operation, **ids},
    )
    return InternalError(
        message, operation,
        ErrorContext(
            place_id=str(ids["place_id"]) if ids.get("place_id") else None,
            user_id=str(ids["user_id"]) if ids.get("user_id") else None,
        ),
    )


class PlaceWorkflow:
    """Orchestrates the place use cases for one request."""

    def __init__(
        self,
        db: AsyncSession,
        geocoder: GeocodeClient,
        images: ImageRemover,
        places: PlaceStore | None = None,
        users: UserStore | None = None,
    ):
        self.db = db
        self.geocoder = geocoder
        self.images = images
        self.places = places or SqlPlaceStore(db)
        self.users = users or SqlUserStore(db)

    # ─── Reads ───────────────────────────────────────────────────

    async def get_place(self, place_id: PlaceId) -> Place:
        try:
            place = await self.places.get(place_id)
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Something went wrong, could not find a place.",
                "get_place", e, place_id=place_id,
            )
        if place is None:
            raise ResourceNotFoundError(
                "Place", str(place_id),
                "Could not find a place for the provided id.",
            )
        return place

    async def get_places_by_user(self, user_id: UserId) -> list[Place]:
        try:
            user, places = await self.users.get_with_places(user_id)
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Fetching places failed, please try again later.",
                "get_places_by_user", e, user_id=user_id,
            )
        if user is None or not places:
            raise ResourceNotFoundError(
                "User", str(user_id),
                "Could not find places for the provided user id.",
            )
        return places

    # ─── Writes ──────────────────────────────────────────────────

    async def create_place(
        self, data: PlaceCreate, image_path: str, actor_id: UserId,
    ) -> Place:
        """Geocode, insert, and link the new place to its creator atomically."""
        location = await self.geocoder.resolve(data.address)

        place = Place(
            title=data.title,
            description=data.description,
            address=data.address,
            lat=location.lat,
            lng=location.lng,
            image=image_path,
            creator_id=actor_id,
        )

        try:
            user = await self.users.get(actor_id, lock=True)
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Creating place failed, please try again.",
                "lookup_creator", e, user_id=actor_id,
            )
        if user is None:
            raise ResourceNotFoundError(
                "User", str(actor_id), "Could not find user for provided id.",
            )

        try:
            await self.places.add(place)
            await self.users.attach_place(user, place.id)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Creating place failed, please try again.",
                "create_place", e, user_id=actor_id,
            )

        logger.info(
            f"Place created: {place.title}",
            extra={"place_id": place.id, "user_id": actor_id},
        )
        return place

    async def update_place(
        self, place_id: PlaceId, data: PlaceUpdate, actor_id: UserId,
    ) -> Place:
        try:
            place = await self.places.get(place_id)
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Something went wrong, could not update place.",
                "update_place", e, place_id=place_id,
            )
        if place is None:
            raise ResourceNotFoundError(
                "Place", str(place_id),
                "Could not find a place for the provided id.",
            )
        if place.creator_id != actor_id:
            raise UnauthorizedError("You are not allowed to edit this place.")

        place.title = data.title
        place.description = data.description
        try:
            await self.places.save(place)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Something went wrong, could not update place.",
                "update_place", e, place_id=place_id,
            )

        logger.info("Place updated", extra={"place_id": place_id})
        return place

    async def delete_place(self, place_id: PlaceId, actor_id: UserId) -> None:
        """Remove the place and unlink it from its creator atomically, then drop its image."""
        try:
            place = await self.places.get_with_creator(place_id)
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Something went wrong, could not delete place.",
                "delete_place", e, place_id=place_id,
            )
        if place is None:
            raise ResourceNotFoundError(
                "Place", str(place_id), "Could not find place for this id.",
            )

        if place.creator is None or place.creator.id != actor_id:
            raise UnauthorizedError("You are not allowed to delete this place.")

        image_path = place.image
        try:
            creator = await self.users.get(actor_id, lock=True)
            await self.places.remove(place)
            await self.users.detach_place(creator, place_id)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise _storage_failure(
                "Something went wrong, could not delete place.",
                "delete_place", e, place_id=place_id,
            )

        logger.info(
            "Place deleted", extra={"place_id": place_id, "user_id": actor_id},
        )
        await self.images.remove(image_path)
