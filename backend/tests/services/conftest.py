"""Service test fixtures — async DB, fake geocoder, image storage and FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - get_db, get_geocoder and get_image_storage overridden for route tests
    - Verification reads use fresh sessions, never the seeding session's identity map

Design Decisions:
    - File-backed SQLite over :memory:: each session gets its own connection, so an
      uncommitted transaction is really invisible to the verifying session
    - FakeGeocoder resolves from a dict: no network, deterministic failures
"""

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_geocoder, get_image_storage
from app.db.base import Base
from app.infrastructure.database import get_db
from app.infrastructure.image_storage import ImageStorage
from app.models.place import Place
from app.models.user import User
from app.main import app

from tests.services.fakes import FakeGeocoder, GOOGLEPLEX, GOOGLEPLEX_COORDS


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'places.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def geocoder():
    return FakeGeocoder({GOOGLEPLEX: GOOGLEPLEX_COORDS})


@pytest.fixture
def image_storage(tmp_path):
    return ImageStorage(str(tmp_path / "images"), max_bytes=1_000)


@pytest.fixture
async def client(test_session_factory, geocoder, image_storage):
    """FastAPI test client with DB, geocoder and image storage overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_image_storage] = lambda: image_storage

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


async def _create_user(db, name: str, email: str) -> User:
    user = User(name=name, email=email)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def seed_user(test_db):
    return await _create_user(test_db, "Ada", "ada@example.com")


@pytest.fixture
async def other_user(test_db):
    return await _create_user(test_db, "Grace", "grace@example.com")


@pytest.fixture
async def seed_place(test_db, seed_user, image_storage):
    """A place owned by seed_user, linked in users.place_ids, with an image on disk."""
    image_dir = tmp_image_dir(image_storage)
    image_path = str(image_dir / "seed.png")
    with open(image_path, "wb") as f:
        f.write(b"\x89PNG seed")

    place = Place(
        title="Empire State Building",
        description="One of the most famous sky scrapers in the world!",
        address="20 W 34th St, New York, NY 10001",
        lat=40.7484405,
        lng=-73.9878584,
        image=image_path,
        creator_id=seed_user.id,
    )
    test_db.add(place)
    await test_db.flush()
    seed_user.place_ids = [*seed_user.place_ids, str(place.id)]
    await test_db.commit()
    return place


def tmp_image_dir(image_storage: ImageStorage) -> Path:
    path = Path(image_storage.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path
