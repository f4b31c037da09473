"""HTTP client for the Delhivery package-tracking API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from shipsync.adapters.http_resilience import ResilientClient

from .schema import TrackingResponse
from .translator import parse_shipment

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from shipsync.config.delhivery import DelhiveryConfig
    from shipsync.config.http_resilience import ResilienceConfig
    from shipsync.domain.model import ShipmentRecord

log = getLogger(__name__)

TRACKING_PATH = "/api/v1/packages/json/"


class DelhiveryAPIError(RuntimeError):
    """Raised when the Delhivery API returns an application-level error."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass(slots=True)
class DelhiveryTrackingClient:
    """Fetch shipment snapshots with a bounded, fixed-delay attempt loop.

    Use as an async context manager so one connection pool serves the run.
    """

    config: DelhiveryConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = ResilientClient
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> DelhiveryTrackingClient:
        self._client = self.client_factory(self.config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_shipment(self, tracking_number: str) -> ShipmentRecord | None:
        """Return the shipment for ``tracking_number`` or ``None`` when unavailable."""

        attempts = self.config.attempts
        last_error: Exception | None = None
        payload: dict[str, object] | None = None
        for attempt in range(1, attempts + 1):
            try:
                payload = await self._request_tracking(tracking_number)
                break
            except (httpx.HTTPError, DelhiveryAPIError) as exc:
                last_error = exc
                log.warning(
                    "Attempt %s/%s for AWB %s failed: %s", attempt, attempts, tracking_number, exc
                )
                if attempt < attempts:
                    await self.sleep(self.config.retry_delay_seconds)

        if payload is None:
            log.error(
                "All %s attempts failed for AWB %s: %s", attempts, tracking_number, last_error
            )
            return None

        try:
            response = TrackingResponse.model_validate(payload)
            shipment = response.first_shipment
            if shipment is None:
                log.warning("No shipment in tracking payload for AWB %s", tracking_number)
                return None
            return parse_shipment(tracking_number, shipment)
        except ValidationError:
            log.exception("Unparseable tracking payload for AWB %s", tracking_number)
            return None

    async def _request_tracking(self, tracking_number: str) -> dict[str, object]:
        if self._client is None:
            raise RuntimeError("DelhiveryTrackingClient used outside of 'async with'")
        response = await self._client.get(
            TRACKING_PATH,
            params={"waybill": tracking_number},
            headers={"Authorization": f"Token {self.config.token}"},
        )
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise DelhiveryAPIError("Delhivery response is not JSON") from exc
        if not isinstance(payload, dict):
            raise DelhiveryAPIError("Unexpected Delhivery response payload")
        if "ShipmentData" not in payload and payload.get("Error"):
            raise DelhiveryAPIError(str(payload["Error"]), code=response.status_code)
        return payload
