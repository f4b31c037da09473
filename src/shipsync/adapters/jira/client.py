"""HTTP client for the Jira Cloud REST v3 API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from shipsync.adapters.http_resilience import ResilientClient

from .jql import candidate_queries
from .schema import ErrorResponse, IssuePayload, SearchResponse, TransitionsResponse
from .translator import comment_body, delta_to_fields, parse_ticket, parse_transition

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from shipsync.config.http_resilience import ResilienceConfig
    from shipsync.config.jira import JiraConfig
    from shipsync.domain.model import FieldDelta, Ticket, TicketField, TransitionCandidate

log = getLogger(__name__)

API_PREFIX = "/rest/api/3"


class JiraAPIError(RuntimeError):
    """Raised when Jira rejects a request or returns an unexpected payload."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class JiraClient:
    """Ticket query and mutation calls used by reconciliation.

    Use as an async context manager so one connection pool serves the run.
    """

    config: JiraConfig
    tracking_field: str
    field_ids: dict[TicketField, str]
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None
    clock: Callable[[], datetime] = _utcnow
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> JiraClient:
        if self.client_factory is not None:
            self._client = self.client_factory(self.config.resilience)
        else:
            self._client = ResilientClient(
                self.config.resilience,
                auth=httpx.BasicAuth(self.config.email, self.config.api_token),
            )
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

    async def search_tickets(
        self,
        *,
        created_since_days: int,
        issue_key: str | None = None,
    ) -> list[Ticket]:
        queries = candidate_queries(
            project=self.config.project,
            tracking_field=self.tracking_field,
            created_since_days=created_since_days,
            today=self.clock().date(),
            issue_key=issue_key,
        )
        tickets: list[Ticket] = []
        seen: set[str] = set()
        for jql in queries:
            log.info("Fetching issues: %s", jql)
            for issue in await self._search_all(jql):
                if issue.key in seen:
                    continue
                seen.add(issue.key)
                tickets.append(
                    parse_ticket(issue, tracking_field=self.tracking_field, field_ids=self.field_ids)
                )
        log.info("Fetched %s candidate issues", len(tickets))
        return tickets

    async def list_transitions(self, ticket_key: str) -> list[TransitionCandidate]:
        response = await self._http().get(f"{API_PREFIX}/issue/{ticket_key}/transitions")
        _raise_for_status(response)
        payload = TransitionsResponse.model_validate(response.json())
        return [parse_transition(transition) for transition in payload.transitions]

    async def apply_transition(self, ticket_key: str, transition: TransitionCandidate) -> None:
        response = await self._http().post(
            f"{API_PREFIX}/issue/{ticket_key}/transitions",
            json={"transition": {"id": transition.id}},
        )
        _raise_for_status(response)

    async def update_fields(self, ticket_key: str, delta: FieldDelta) -> None:
        if not delta:
            return
        response = await self._http().put(
            f"{API_PREFIX}/issue/{ticket_key}",
            json={"fields": delta_to_fields(delta, self.field_ids)},
        )
        _raise_for_status(response)

    async def add_comment(self, ticket_key: str, text: str) -> None:
        """Post a comment; failures are logged and never fail the ticket."""

        try:
            response = await self._http().post(
                f"{API_PREFIX}/issue/{ticket_key}/comment",
                json=comment_body(text),
            )
            _raise_for_status(response)
        except (httpx.HTTPError, JiraAPIError) as exc:
            log.error("Failed to add comment to %s: %s", ticket_key, exc)
            return
        log.info("Comment added to %s", ticket_key)

    async def assign(self, ticket_key: str, account_id: str) -> None:
        response = await self._http().put(
            f"{API_PREFIX}/issue/{ticket_key}/assignee",
            json={"accountId": account_id},
        )
        _raise_for_status(response)

    async def _search_all(self, jql: str) -> list[IssuePayload]:
        fields = ",".join(["status", self.tracking_field, *self.field_ids.values()])
        issues: list[IssuePayload] = []
        next_page_token: str | None = None
        while True:
            params: dict[str, str | int] = {
                "jql": jql,
                "fields": fields,
                "maxResults": self.config.page_size,
            }
            if next_page_token:
                params["nextPageToken"] = next_page_token
            response = await self._http().get(f"{API_PREFIX}/search/jql", params=params)
            _raise_for_status(response)
            page = SearchResponse.model_validate(response.json())
            issues.extend(page.issues)

            next_page_token = page.next_page_token
            if not page.issues or page.is_last or not next_page_token:
                break
        return issues

    def _http(self) -> ResilientClient:
        if self._client is None:
            raise RuntimeError("JiraClient used outside of 'async with'")
        return self._client


def _raise_for_status(response: httpx.Response) -> None:
    if not response.is_error:
        return
    message = f"Jira returned HTTP {response.status_code}"
    try:
        detail = ErrorResponse.model_validate(response.json()).summary()
    except ValueError:
        detail = response.text[:200]
    if detail:
        message = f"{message}: {detail}"
    raise JiraAPIError(message, code=response.status_code)
