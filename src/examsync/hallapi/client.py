"""
Async client for the remote exam-hall system.

Read-only, bearer-token authenticated. Every failure (transport, timeout,
non-2xx, undecodable or unexpected payload) surfaces as ExternalSourceError;
a call either returns the whole list or raises. No retries here.
"""
import logging
from datetime import date
from typing import Any, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from examsync.errors import ExternalSourceError
from examsync.hallapi.schemas import ExternalFacility, ExternalRoom, TimeSlotOccupancy

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class HallApiClient:
    """Thin async wrapper over the hall system's /exam-halls, /hall-rooms and /room-participants."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Root of the external-app API, without trailing slash.
            token: Bearer token sent on every request.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings) -> "HallApiClient":
        return cls(
            base_url=settings.hall_api_base_url,
            token=settings.hall_api_token,
            timeout=settings.hall_api_timeout_seconds,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def fetch_facilities(self) -> List[ExternalFacility]:
        """GET /exam-halls: every hall with its nested rooms."""
        logger.info("Fetching exam halls from external API")
        halls = await self._get_list("/exam-halls", ExternalFacility)
        logger.info("Fetched %d exam halls", len(halls))
        return halls

    async def fetch_rooms_for_facility(self, facility_external_id: int) -> List[ExternalRoom]:
        """GET /hall-rooms/{id}: rooms of one hall."""
        logger.info("Fetching rooms for hall %s", facility_external_id)
        return await self._get_list(
            f"/hall-rooms/{facility_external_id}", ExternalRoom
        )

    async def fetch_participants(self, exam_date: date) -> List[TimeSlotOccupancy]:
        """GET /room-participants/{YYYY-MM-DD}: per-room counts grouped by start time."""
        logger.info("Fetching participants for date %s", exam_date.isoformat())
        return await self._get_list(
            f"/room-participants/{exam_date.isoformat()}", TimeSlotOccupancy
        )

    # ─── Internal helpers ─────────────────────────────────────────────────────

    async def _get_list(self, path: str, model: Type[M]) -> List[M]:
        payload = await self._get(path)
        # The hall system wraps results as {"data": [...]}
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        try:
            return TypeAdapter(List[model]).validate_python(payload)
        except ValidationError as exc:
            raise ExternalSourceError(
                f"External API error: unexpected payload from {path}: {exc}",
                url=path,
            ) from exc

    async def _get(self, path: str) -> Any:
        client = self._get_client()
        try:
            resp = await client.get(path)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "External API returned %d for %s", exc.response.status_code, path
            )
            raise ExternalSourceError(
                f"External API error: {exc.response.status_code} for {path}",
                status_code=exc.response.status_code,
                url=path,
            ) from exc
        except httpx.TimeoutException as exc:
            logger.error("External API timed out for %s", path)
            raise ExternalSourceError(
                f"External API error: timed out after {self.timeout}s for {path}",
                url=path,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("External API request failed for %s: %s", path, exc)
            raise ExternalSourceError(
                f"External API error: {exc}", url=path
            ) from exc
        except ValueError as exc:
            raise ExternalSourceError(
                f"External API error: invalid JSON from {path}", url=path
            ) from exc
