"""Core Layer — domain types, error hierarchy and boundary protocols.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - No IO happens here

Design Decisions:
    - Protocols live beside the domain types so the workflow can be tested with plain fakes
"""
