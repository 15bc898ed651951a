"""Services Layer — place workflow and its SQLAlchemy stores.

Invariants:
    - Stores flush, the workflow commits
    - Storage errors translated to core/errors.py variants in the workflow only
"""
