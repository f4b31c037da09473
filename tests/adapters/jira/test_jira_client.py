from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable  # noqa: TC003
from datetime import UTC, datetime

import httpx
import pytest

from shipsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from shipsync.adapters.jira import JiraAPIError, JiraClient
from shipsync.config.jira import JiraConfig, jira_resilience_config
from shipsync.domain.model import TicketField
from tests.support.shipments import transition

DOMAIN = "https://example.atlassian.net"
FIELD_IDS = {
    TicketField.DISPATCH_DATE: "customfield_10200",
    TicketField.DELIVERY_DATE: "customfield_10201",
}


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


def _run[T](
    handler: Callable[[httpx.Request], httpx.Response],
    call: Callable[[JiraClient], Awaitable[T]],
    *,
    page_size: int = 50,
) -> T:
    client = JiraClient(
        config=JiraConfig(
            domain=DOMAIN,
            email="ops@example.com",
            api_token="token",
            project="OPS",
            resilience=jira_resilience_config(DOMAIN, user_agent=None),
            page_size=page_size,
        ),
        tracking_field="customfield_10050",
        field_ids=dict(FIELD_IDS),
        client_factory=_make_client_factory(handler),
        clock=lambda: datetime(2025, 3, 20, tzinfo=UTC),
    )

    async def run() -> T:
        async with client:
            return await call(client)

    return asyncio.run(run())


def _issue(key: str, status: str = "IN - TRANSIT") -> dict[str, object]:
    return {
        "key": key,
        "fields": {
            "status": {"name": status},
            "customfield_10050": f"https://www.delhivery.com/p/2979881013437{key[-1]}",
            "customfield_10200": "2025-03-02",
        },
    }


def test_search_tickets_pages_and_deduplicates() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        jql = request.url.params["jql"]
        if 'status = "PICKUP SCHEDULED"' in jql:
            return httpx.Response(
                200, json={"issues": [_issue("OPS-1", "PICKUP SCHEDULED")], "isLast": True}
            )
        if "nextPageToken" not in request.url.params:
            return httpx.Response(
                200,
                json={"issues": [_issue("OPS-2")], "nextPageToken": "page-2", "isLast": False},
            )
        return httpx.Response(
            200, json={"issues": [_issue("OPS-1"), _issue("OPS-3")], "isLast": True}
        )

    tickets = _run(handler, lambda client: client.search_tickets(created_since_days=45))

    assert [ticket.key for ticket in tickets] == ["OPS-1", "OPS-2", "OPS-3"]
    assert tickets[0].status == "PICKUP SCHEDULED"
    assert tickets[1].value(TicketField.DISPATCH_DATE) == "2025-03-02"
    assert len(requests) == 3
    first = requests[0]
    assert first.url.path == "/rest/api/3/search/jql"
    assert first.url.params["fields"] == "status,customfield_10050,customfield_10200,customfield_10201"
    assert 'created >= "2025-02-03"' in first.url.params["jql"]
    assert requests[2].url.params["nextPageToken"] == "page-2"


def test_search_tickets_for_single_issue_key() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params["jql"])
        return httpx.Response(200, json={"issues": [_issue("OPS-9")]})

    tickets = _run(
        handler, lambda client: client.search_tickets(created_since_days=45, issue_key="OPS-9")
    )

    assert seen == ["key = OPS-9"]
    assert [ticket.key for ticket in tickets] == ["OPS-9"]


def test_list_and_apply_transition() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(
                200,
                json={"transitions": [{"id": "41", "name": "Deliver", "to": {"name": "DELIVERED"}}]},
            )
        return httpx.Response(204)

    async def call(client: JiraClient) -> None:
        offered = await client.list_transitions("OPS-1")
        assert [candidate.target_status for candidate in offered] == ["DELIVERED"]
        await client.apply_transition("OPS-1", offered[0])

    _run(handler, call)

    post = requests[-1]
    assert post.method == "POST"
    assert post.url.path == "/rest/api/3/issue/OPS-1/transitions"
    assert json.loads(post.content) == {"transition": {"id": "41"}}


def test_update_fields_and_assign_send_put_requests() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(204)

    async def call(client: JiraClient) -> None:
        await client.update_fields("OPS-1", {})
        await client.update_fields("OPS-1", {TicketField.DELIVERY_DATE: "2025-03-08"})
        await client.assign("OPS-1", "account-123")

    _run(handler, call)

    assert [(request.method, request.url.path) for request in requests] == [
        ("PUT", "/rest/api/3/issue/OPS-1"),
        ("PUT", "/rest/api/3/issue/OPS-1/assignee"),
    ]
    assert json.loads(requests[0].content) == {"fields": {"customfield_10201": "2025-03-08"}}
    assert json.loads(requests[1].content) == {"accountId": "account-123"}


def test_rejected_transition_raises_with_jira_messages() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"errorMessages": ["Transition is not valid"], "errors": {}}
        )

    with pytest.raises(JiraAPIError, match="HTTP 400: Transition is not valid") as excinfo:
        _run(handler, lambda client: client.apply_transition("OPS-1", transition("DELIVERED")))

    assert excinfo.value.code == 400


def test_failed_comment_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    _run(handler, lambda client: client.add_comment("OPS-1", "Order is now in transit"))

    assert "Failed to add comment to OPS-1" in caplog.text
