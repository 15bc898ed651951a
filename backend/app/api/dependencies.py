"""API Dependencies — actor authentication and workflow wiring for route handlers.

Invariants:
    - get_current_actor yields a UserId only for a valid, unexpired HS256 bearer token
      whose userId claim is a UUID; anything else is UnauthorizedError (401)
    - Routes obtain PlaceWorkflow only through get_place_workflow (tests override the parts)

Design Decisions:
    - HTTPBearer(auto_error=False): missing credentials raise our 401 envelope, not FastAPI's 403
    - Geocoder and image storage built from settings per request: both are stateless
"""

import logging
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.domain_types import UserId
from app.core.errors import UnauthorizedError
from app.infrastructure.database import get_db
from app.infrastructure.geocoding import NominatimGeocoder
from app.infrastructure.image_storage import ImageStorage
from app.services.place_workflow import PlaceWorkflow

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> UserId:
    """Verify the bearer token and return the caller's user id."""
    if credentials is None:
        raise UnauthorizedError()

    settings = get_settings()
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_key,
            algorithms=[settings.jwt_algorithm],
        )
        return UserId(UUID(str(payload["userId"])))
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise UnauthorizedError()
    except (KeyError, ValueError):
        logger.info("Rejected token: missing or malformed userId claim")
        raise UnauthorizedError()


def get_geocoder() -> NominatimGeocoder:
    settings = get_settings()
    return NominatimGeocoder(
        settings.geocoding_url,
        settings.geocoding_user_agent,
        settings.geocoding_timeout_seconds,
    )


def get_image_storage() -> ImageStorage:
    settings = get_settings()
    return ImageStorage(settings.upload_dir, settings.max_image_bytes)


def get_place_workflow(
    db: AsyncSession = Depends(get_db),
    geocoder: NominatimGeocoder = Depends(get_geocoder),
    images: ImageStorage = Depends(get_image_storage),
) -> PlaceWorkflow:
    return PlaceWorkflow(db, geocoder, images)
