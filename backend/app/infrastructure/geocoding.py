"""Nominatim Geocoder — resolves a free-text address to coordinates over HTTP.

Invariants:
    - One GET per resolve() call, no retry
    - Every failure (empty result, non-2xx, transport error, malformed payload)
      surfaces as GeocodeError (422) — callers never see httpx exceptions
    - First result wins; Nominatim returns lat/lon as strings, parsed to float

Design Decisions:
    - httpx.AsyncClient per call: no long-lived connection state to manage on shutdown
      (ADR: geocoding happens once per place creation)
    - Injectable transport: tests swap in httpx.MockTransport instead of patching
    - User-Agent always sent: required by the Nominatim usage policy
"""

import logging

import httpx

from app.core.domain_types import Coordinates
from app.core.errors import GeocodeError

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Geocoder backed by an OpenStreetMap Nominatim search endpoint."""

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def resolve(self, address: str) -> Coordinates:
        """Return coordinates of the best match for address."""
        payload = await self._search(address)
        if not isinstance(payload, list) or not payload:
            logger.info(f"No geocoding result for address {address!r}")
            raise GeocodeError()
        return _parse_first_result(payload[0], address)

    async def _search(self, address: str):
        params = {"q": address, "format": "jsonv2", "limit": 1}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Geocoding request failed for {address!r}: {e}")
            raise GeocodeError() from e
        except ValueError as e:
            logger.warning(f"Geocoding returned invalid JSON for {address!r}: {e}")
            raise GeocodeError() from e


def _parse_first_result(result: dict, address: str) -> Coordinates:
    try:
        return Coordinates(lat=float(result["lat"]), lng=float(result["lon"]))
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Unusable geocoding result for {address!r}: {result}")
        raise GeocodeError() from e
