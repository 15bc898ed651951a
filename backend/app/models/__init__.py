"""ORM Models — SQLAlchemy declarative models for places and users.

Invariants:
    - All models inherit from Base (db/base.py)
    - Place.creator_id and User.place_ids are kept consistent by PlaceWorkflow only

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from app.models.user import User  # noqa: F401
from app.models.place import Place  # noqa: F401
