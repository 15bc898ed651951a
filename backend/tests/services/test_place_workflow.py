"""Place Workflow — create/read/update/delete semantics against a real SQLite session.

Tests cover:
    - Create links the place to its creator; owner-read returns it
    - Create and delete are atomic when the users write fails mid-transaction
    - Non-owners cannot update or delete; nothing changes when they try
    - Geocode failures never leave a place behind, however often repeated
    - Storage errors surface as InternalError without the cause in the message
    - A competing commit on the same user makes create/delete fail instead of dropping an id
"""

import os

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from uuid import uuid4

from app.core.domain_types import Coordinates, PlaceId, UserId
from app.core.errors import (
    GeocodeError, InternalError, ResourceNotFoundError, UnauthorizedError,
)
from app.models.place import Place
from app.models.user import User
from app.schemas.place import PlaceCreate, PlaceUpdate
from app.services.place_store import SqlPlaceStore
from app.services.place_workflow import PlaceWorkflow
from app.services.user_store import SqlUserStore

from tests.services.fakes import GOOGLEPLEX


def _disk_error() -> OperationalError:
    return OperationalError("UPDATE users", {}, Exception("disk I/O error"))


class _FailingAttachUserStore(SqlUserStore):
    async def attach_place(self, user, place_id):
        raise _disk_error()


class _FailingDetachUserStore(SqlUserStore):
    async def detach_place(self, user, place_id):
        raise _disk_error()


class _BrokenPlaceStore(SqlPlaceStore):
    async def get(self, place_id):
        raise _disk_error()

    async def get_with_creator(self, place_id):
        raise _disk_error()


class _BrokenUserStore(SqlUserStore):
    async def get(self, user_id, lock=False):
        raise _disk_error()

    async def get_with_places(self, user_id):
        raise _disk_error()


class _FailingSavePlaceStore(SqlPlaceStore):
    async def save(self, place):
        raise _disk_error()


class _ConcurrentWriterUserStore(SqlUserStore):
    """Commits a competing place for the same user right after each user read."""

    def __init__(self, db, session_factory):
        super().__init__(db)
        self.session_factory = session_factory
        self.competing_place_id = None

    async def get(self, user_id, lock=False):
        user = await super().get(user_id, lock=lock)
        async with self.session_factory() as other:
            users = SqlUserStore(other)
            competing = _stored_place(user_id, "Competing")
            other.add(competing)
            await other.flush()
            await users.attach_place(await users.get(user_id), competing.id)
            await other.commit()
        self.competing_place_id = competing.id
        return user


class _RecordingImages:
    def __init__(self, succeed: bool = True):
        self.removed: list[str] = []
        self.succeed = succeed

    async def remove(self, path: str) -> bool:
        self.removed.append(path)
        return self.succeed


def _stored_place(creator_id, title: str) -> Place:
    return Place(
        title=title, description="Somewhere worth a visit.",
        address="Somewhere", lat=1.0, lng=2.0,
        image=f"uploads/images/{title}.png", creator_id=creator_id,
    )


def _create_input(address: str = GOOGLEPLEX) -> PlaceCreate:
    return PlaceCreate(
        title="Googleplex",
        description="Headquarters with a dinosaur skeleton outside.",
        address=address,
    )


async def _count_places(session_factory) -> int:
    async with session_factory() as db:
        result = await db.execute(select(func.count()).select_from(Place))
        return result.scalar_one()


async def _load_user(session_factory, user_id) -> User:
    async with session_factory() as db:
        return await db.get(User, user_id)


async def _load_place(session_factory, place_id) -> Place | None:
    async with session_factory() as db:
        return await db.get(Place, place_id)


# ─── Create ──────────────────────────────────────────────────────

async def test_create_sets_creator_and_location(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        place = await workflow.create_place(
            _create_input(), "uploads/images/a.png", UserId(seed_user.id),
        )

    assert place.creator_id == seed_user.id
    assert place.location == Coordinates(lat=37.4, lng=-122.08)
    assert place.image == "uploads/images/a.png"


async def test_created_place_appears_in_owner_read(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        place = await workflow.create_place(
            _create_input(), "uploads/images/a.png", UserId(seed_user.id),
        )

    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        places = await workflow.get_places_by_user(UserId(seed_user.id))

    assert [p.id for p in places] == [place.id]
    user = await _load_user(test_session_factory, seed_user.id)
    assert user.place_ids == [str(place.id)]


async def test_owner_read_preserves_creation_order(
    test_session_factory, geocoder, seed_user,
):
    created = []
    for title in ("First", "Second", "Third"):
        async with test_session_factory() as db:
            workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
            data = _create_input()
            data.title = title
            created.append(await workflow.create_place(
                data, f"uploads/images/{title}.png", UserId(seed_user.id),
            ))

    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        places = await workflow.get_places_by_user(UserId(seed_user.id))

    assert [p.title for p in places] == ["First", "Second", "Third"]


async def test_create_is_atomic_when_linking_user_fails(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(
            db, geocoder, _RecordingImages(),
            users=_FailingAttachUserStore(db),
        )
        with pytest.raises(InternalError) as exc_info:
            await workflow.create_place(
                _create_input(), "uploads/images/a.png", UserId(seed_user.id),
            )
        # the insert itself went through inside the open transaction
        pending = await db.execute(select(func.count()).select_from(Place))
        assert pending.scalar_one() == 1

    assert exc_info.value.http_status == 500
    assert "disk" not in exc_info.value.message
    assert await _count_places(test_session_factory) == 0
    user = await _load_user(test_session_factory, seed_user.id)
    assert user.place_ids == []


async def test_create_for_unknown_user_is_not_found(
    test_session_factory, geocoder,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await workflow.create_place(
                _create_input(), "uploads/images/a.png", UserId(uuid4()),
            )

    assert exc_info.value.message == "Could not find user for provided id."
    assert await _count_places(test_session_factory) == 0


async def test_repeated_geocode_failure_never_creates_a_place(
    test_session_factory, geocoder, seed_user,
):
    for _ in range(3):
        async with test_session_factory() as db:
            workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
            with pytest.raises(GeocodeError):
                await workflow.create_place(
                    _create_input("Nowhere Street 0, Atlantis"),
                    "uploads/images/a.png",
                    UserId(seed_user.id),
                )

    assert geocoder.calls == ["Nowhere Street 0, Atlantis"] * 3
    assert await _count_places(test_session_factory) == 0


async def test_storage_error_on_creator_lookup_is_internal(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(
            db, geocoder, _RecordingImages(), users=_BrokenUserStore(db),
        )
        with pytest.raises(InternalError) as exc_info:
            await workflow.create_place(
                _create_input(), "uploads/images/a.png", UserId(seed_user.id),
            )

    assert exc_info.value.message == "Creating place failed, please try again."
    assert await _count_places(test_session_factory) == 0


# ─── Read ────────────────────────────────────────────────────────

async def test_get_place_returns_stored_place(
    test_session_factory, geocoder, seed_place,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        place = await workflow.get_place(PlaceId(seed_place.id))
    assert place.title == "Empire State Building"


async def test_get_missing_place_is_not_found(test_session_factory, geocoder):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await workflow.get_place(PlaceId(uuid4()))
    assert exc_info.value.http_status == 404


async def test_owner_read_conflates_unknown_user_and_no_places(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        with pytest.raises(ResourceNotFoundError) as no_places:
            await workflow.get_places_by_user(UserId(seed_user.id))
        with pytest.raises(ResourceNotFoundError) as no_user:
            await workflow.get_places_by_user(UserId(uuid4()))

    assert no_places.value.message == no_user.value.message


async def test_storage_error_on_read_is_internal(test_session_factory, geocoder):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(
            db, geocoder, _RecordingImages(), places=_BrokenPlaceStore(db),
        )
        with pytest.raises(InternalError) as exc_info:
            await workflow.get_place(PlaceId(uuid4()))

    assert exc_info.value.message == (
        "Something went wrong, could not find a place."
    )


async def test_storage_error_on_owner_read_is_internal(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(
            db, geocoder, _RecordingImages(), users=_BrokenUserStore(db),
        )
        with pytest.raises(InternalError) as exc_info:
            await workflow.get_places_by_user(UserId(seed_user.id))

    assert exc_info.value.message == (
        "Fetching places failed, please try again later."
    )
    assert "disk" not in exc_info.value.message


# ─── Update ──────────────────────────────────────────────────────

async def test_owner_can_update_title_and_description(
    test_session_factory, geocoder, seed_user, seed_place,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        await workflow.update_place(
            PlaceId(seed_place.id),
            PlaceUpdate(title="ESB", description="Art Deco skyscraper."),
            UserId(seed_user.id),
        )

    stored = await _load_place(test_session_factory, seed_place.id)
    assert stored.title == "ESB"
    assert stored.description == "Art Deco skyscraper."
    assert stored.address == seed_place.address
    assert (stored.lat, stored.lng) == (seed_place.lat, seed_place.lng)


async def test_non_owner_update_is_unauthorized_and_changes_nothing(
    test_session_factory, geocoder, seed_place, other_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        with pytest.raises(UnauthorizedError):
            await workflow.update_place(
                PlaceId(seed_place.id),
                PlaceUpdate(title="Hijacked", description="Not my place."),
                UserId(other_user.id),
            )

    stored = await _load_place(test_session_factory, seed_place.id)
    assert stored.title == "Empire State Building"


async def test_update_missing_place_is_not_found(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        with pytest.raises(ResourceNotFoundError):
            await workflow.update_place(
                PlaceId(uuid4()),
                PlaceUpdate(title="Ghost", description="Does not exist."),
                UserId(seed_user.id),
            )


async def test_storage_error_on_update_leaves_place_unmodified(
    test_session_factory, geocoder, seed_user, seed_place,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(
            db, geocoder, _RecordingImages(), places=_FailingSavePlaceStore(db),
        )
        with pytest.raises(InternalError) as exc_info:
            await workflow.update_place(
                PlaceId(seed_place.id),
                PlaceUpdate(title="ESB", description="Art Deco skyscraper."),
                UserId(seed_user.id),
            )

    assert exc_info.value.message == (
        "Something went wrong, could not update place."
    )
    stored = await _load_place(test_session_factory, seed_place.id)
    assert stored.title == "Empire State Building"
    assert stored.description == seed_place.description


# ─── Delete ──────────────────────────────────────────────────────

async def test_owner_delete_removes_place_link_and_image(
    test_session_factory, geocoder, seed_user, seed_place,
):
    images = _RecordingImages()
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, images)
        await workflow.delete_place(PlaceId(seed_place.id), UserId(seed_user.id))

    assert await _load_place(test_session_factory, seed_place.id) is None
    user = await _load_user(test_session_factory, seed_user.id)
    assert user.place_ids == []
    assert images.removed == [seed_place.image]


async def test_delete_is_atomic_when_unlinking_user_fails(
    test_session_factory, geocoder, seed_user, seed_place,
):
    images = _RecordingImages()
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(
            db, geocoder, images, users=_FailingDetachUserStore(db),
        )
        with pytest.raises(InternalError):
            await workflow.delete_place(
                PlaceId(seed_place.id), UserId(seed_user.id),
            )

    assert await _load_place(test_session_factory, seed_place.id) is not None
    user = await _load_user(test_session_factory, seed_user.id)
    assert user.place_ids == [str(seed_place.id)]
    assert images.removed == []
    assert os.path.exists(seed_place.image)


async def test_non_owner_delete_is_unauthorized_and_changes_nothing(
    test_session_factory, geocoder, seed_user, seed_place, other_user,
):
    images = _RecordingImages()
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, images)
        with pytest.raises(UnauthorizedError) as exc_info:
            await workflow.delete_place(
                PlaceId(seed_place.id), UserId(other_user.id),
            )

    assert exc_info.value.http_status == 401
    assert await _load_place(test_session_factory, seed_place.id) is not None
    user = await _load_user(test_session_factory, seed_user.id)
    assert user.place_ids == [str(seed_place.id)]
    assert images.removed == []


async def test_delete_succeeds_when_image_removal_fails(
    test_session_factory, geocoder, seed_user, seed_place,
):
    images = _RecordingImages(succeed=False)
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, images)
        await workflow.delete_place(PlaceId(seed_place.id), UserId(seed_user.id))

    assert await _load_place(test_session_factory, seed_place.id) is None
    assert images.removed == [seed_place.image]


async def test_delete_missing_place_is_not_found(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages())
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await workflow.delete_place(PlaceId(uuid4()), UserId(seed_user.id))
    assert exc_info.value.message == "Could not find place for this id."


async def test_storage_error_on_delete_lookup_is_internal(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        workflow = PlaceWorkflow(
            db, geocoder, _RecordingImages(), places=_BrokenPlaceStore(db),
        )
        with pytest.raises(InternalError):
            await workflow.delete_place(PlaceId(uuid4()), UserId(seed_user.id))


# ─── Concurrent writers ──────────────────────────────────────────

async def test_create_racing_another_create_fails_without_losing_either_link(
    test_session_factory, geocoder, seed_user,
):
    async with test_session_factory() as db:
        users = _ConcurrentWriterUserStore(db, test_session_factory)
        workflow = PlaceWorkflow(db, geocoder, _RecordingImages(), users=users)
        with pytest.raises(InternalError):
            await workflow.create_place(
                _create_input(), "uploads/images/a.png", UserId(seed_user.id),
            )

    user = await _load_user(test_session_factory, seed_user.id)
    assert user.place_ids == [str(users.competing_place_id)]
    assert await _count_places(test_session_factory) == 1


async def test_delete_racing_a_create_fails_and_keeps_both_places(
    test_session_factory, geocoder, seed_user, seed_place,
):
    images = _RecordingImages()
    async with test_session_factory() as db:
        users = _ConcurrentWriterUserStore(db, test_session_factory)
        workflow = PlaceWorkflow(db, geocoder, images, users=users)
        with pytest.raises(InternalError):
            await workflow.delete_place(
                PlaceId(seed_place.id), UserId(seed_user.id),
            )

    user = await _load_user(test_session_factory, seed_user.id)
    assert user.place_ids == [
        str(seed_place.id), str(users.competing_place_id),
    ]
    assert await _load_place(test_session_factory, seed_place.id) is not None
    assert images.removed == []
