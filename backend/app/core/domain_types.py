"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - PlaceId and UserId wrap UUIDs — never mix them in workflow signatures
    - Coordinates are immutable once resolved (location never changes after create)

Design Decisions:
    - NewType over dataclass wrappers for ids: zero runtime cost, full type-checker support
    - Frozen dataclass for Coordinates: value object, hashable, compares by value
"""

from dataclasses import dataclass
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

PlaceId = NewType("PlaceId", UUID)
UserId = NewType("UserId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair produced by geocoding."""
    lat: float
    lng: float
