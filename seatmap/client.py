from typing import FrozenSet, Optional

import httpx
from loguru import logger

from . import config
from .exceptions import BookedSeatsUnavailable


class BookedSeatsClient:
    """Fetches the booked seat labels of a flight from the booking service."""

    def __init__(self, base_url: str = config.SEATS_API_URL, timeout: float = config.SEATS_API_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def booked_seats(self, flight_id: int) -> FrozenSet[str]:
        try:
            response = await self._client.get(f"/flights/{flight_id}/seats")
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"could not load booked seats for flight {flight_id}: {e}")
            raise BookedSeatsUnavailable(f"flight {flight_id}: {e}") from e
        seats = payload.get("booked_seats") if isinstance(payload, dict) else None
        if not isinstance(seats, list) or not all(isinstance(s, str) for s in seats):
            logger.error(f"unexpected booked seats payload for flight {flight_id}: {payload!r}")
            raise BookedSeatsUnavailable(f"flight {flight_id}: malformed booked seats payload")
        return frozenset(seats)

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()
