"""Infrastructure Layer — database, geocoding, image storage and logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All external calls wrapped with timeout and error mapping to core/errors.py

Design Decisions:
    - Thin wrappers over raw clients so the workflow only sees domain errors
"""
