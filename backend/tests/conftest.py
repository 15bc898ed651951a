"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real database, geocoder or token issuer
os.environ.setdefault("JWT_KEY", "test-jwt-key")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("GEOCODING_URL", "http://geocoder.invalid/search")
