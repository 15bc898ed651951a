"""Boundary Protocols — contracts between the place workflow and its collaborators.

Invariants:
    - PlaceWorkflow depends on these Protocols, never on concrete IO classes
    - Store methods flush but never commit — the workflow owns the transaction boundary
    - Store methods let SQLAlchemy errors propagate; translation happens in the workflow

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes (ADR: no inheritance hierarchy)
"""

from typing import Protocol

from app.core.domain_types import Coordinates, PlaceId, UserId
from app.models.place import Place
from app.models.user import User


class GeocodeClient(Protocol):
    """Contract for address → coordinates resolution."""
    async def resolve(self, address: str) -> Coordinates: ...


class ImageRemover(Protocol):
    """Contract for best-effort removal of a stored image."""
    async def remove(self, path: str) -> bool: ...


class PlaceStore(Protocol):
    """Contract for place persistence."""
    async def get(self, place_id: PlaceId) -> Place | None: ...
    async def get_with_creator(self, place_id: PlaceId) -> Place | None: ...
    async def add(self, place: Place) -> None: ...
    async def save(self, place: Place) -> None: ...
    async def remove(self, place: Place) -> None: ...


class UserStore(Protocol):
    """Contract for user lookup and maintenance of User.places."""
    async def get(
        self, user_id: UserId, lock: bool = False,
    ) -> User | None: ...
    async def get_with_places(
        self, user_id: UserId,
    ) -> tuple[User | None, list[Place]]: ...
    async def attach_place(self, user: User, place_id: PlaceId) -> None: ...
    async def detach_place(self, user: User, place_id: PlaceId) -> None: ...
