from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003
from datetime import datetime

import httpx

from shipsync.adapters.delhivery import (
    DelhiveryTrackingClient,
    ShipmentPayload,
    TrackingResponse,
    parse_shipment,
)
from shipsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from shipsync.config.delhivery import DelhiveryConfig
from shipsync.domain.classification import classify
from shipsync.domain.model import Phase
from tests.support.shipments import RecordingSleeper

AWB = "29798810134374"


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def _fetch(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    attempts: int = 3,
    sleeper: RecordingSleeper | None = None,
):
    client = DelhiveryTrackingClient(
        config=DelhiveryConfig(token="secret", attempts=attempts, retry_delay_seconds=0.5),
        client_factory=_make_client_factory(handler),
        sleep=sleeper or RecordingSleeper(),
    )

    async def run():
        async with client:
            return await client.fetch_shipment(AWB)

    return asyncio.run(run())


def test_parse_shipment_maps_status_dates_and_scans(tracking_payload: dict[str, object]) -> None:
    response = TrackingResponse.model_validate(tracking_payload)
    shipment = response.first_shipment
    assert shipment is not None

    record = parse_shipment(AWB, shipment)

    assert record.tracking_number == AWB
    assert record.status == "In Transit"
    assert record.status_type == "RT"
    assert record.status_code == "RT-101"
    assert record.dispatched_at == datetime(2025, 3, 2, 11, 5, 31)  # noqa: DTZ001
    assert record.delivered_at is None
    assert record.returned_at is None
    assert record.reverse_in_transit is True
    assert record.rto_started_at is not None
    assert [scan.scan_type for scan in record.scans] == ["UD", "UD", "UD", "RT"]
    assert record.scans[2].instructions == "Code verified cancellation"
    assert record.scans[-1].location == "Bhiwandi_Mankoli_HB (Maharashtra)"
    assert classify(record) is Phase.RETURN_IN_TRANSIT


def test_shipment_payload_tolerates_nulls_and_string_flags() -> None:
    shipment = ShipmentPayload.model_validate(
        {
            "AWB": 1234567890,
            "Status": None,
            "Scans": None,
            "ReverseInTransit": "false",
            "DeliveryDate": " ",
        }
    )

    record = parse_shipment("fallback", shipment)

    assert record.tracking_number == "1234567890"
    assert record.status == ""
    assert record.scans == ()
    assert record.reverse_in_transit is False
    assert record.delivered_at is None


def test_status_scan_type_used_when_status_type_missing() -> None:
    record = parse_shipment(AWB, {"Status": {"Status": "Delivered", "ScanType": "DL"}})

    assert record.status_type == "DL"
    assert record.tracking_number == AWB


def test_fetch_shipment_sends_token_and_waybill(tracking_payload: dict[str, object]) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=tracking_payload)

    record = _fetch(handler)

    assert record is not None
    assert record.tracking_number == AWB
    assert len(seen) == 1
    request = seen[0]
    assert request.url.path == "/api/v1/packages/json/"
    assert request.url.params["waybill"] == AWB
    assert request.headers["Authorization"] == "Token secret"


def test_fetch_shipment_retries_with_fixed_delay(tracking_payload: dict[str, object]) -> None:
    responses = iter(
        [
            httpx.Response(503, text="busy"),
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json=tracking_payload),
        ]
    )
    sleeper = RecordingSleeper()

    record = _fetch(lambda _request: next(responses), sleeper=sleeper)

    assert record is not None
    assert sleeper.delays == [0.5, 0.5]


def test_fetch_shipment_returns_none_after_exhausting_attempts() -> None:
    calls: list[httpx.Request] = []
    sleeper = RecordingSleeper()

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, text="error")

    record = _fetch(handler, attempts=2, sleeper=sleeper)

    assert record is None
    assert len(calls) == 2
    assert sleeper.delays == [0.5]


def test_fetch_shipment_treats_api_error_payload_as_failed_attempt() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"Error": "Invalid token"})

    assert _fetch(handler) is None
    assert len(calls) == 3


def test_fetch_shipment_without_shipment_returns_none() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ShipmentData": []})

    assert _fetch(handler) is None


def test_fetch_shipment_with_invalid_payload_returns_none() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"ShipmentData": [{"Shipment": {"Status": {"StatusDateTime": "not a date"}}}]},
        )

    assert _fetch(handler) is None


def test_tracking_client_closes_its_http_client_on_exit(
    tracking_payload: dict[str, object],
) -> None:
    created: list[ResilientClient] = []
    build = _make_client_factory(lambda _request: httpx.Response(200, json=tracking_payload))

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = build(resilience)
        created.append(client)
        return client

    tracking = DelhiveryTrackingClient(
        config=DelhiveryConfig(token="secret"), client_factory=factory
    )

    async def run() -> None:
        async with tracking:
            assert await tracking.fetch_shipment(AWB) is not None

    asyncio.run(run())

    assert len(created) == 1
    assert created[0]._client.is_closed  # noqa: SLF001  # type: ignore[reportPrivateUsage]
