"""Ports for the courier lookup and the issue tracker."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model import FieldDelta, ShipmentRecord, Ticket, TransitionCandidate


@runtime_checkable
class ShipmentLookup(Protocol):
    """Fetch a courier snapshot; ``None`` means unavailable, skip the ticket."""

    async def fetch_shipment(self, tracking_number: str) -> ShipmentRecord | None: ...


@runtime_checkable
class TicketTracker(Protocol):
    """Read and write side of the issue tracker used by reconciliation."""

    async def search_tickets(
        self,
        *,
        created_since_days: int,
        issue_key: str | None = None,
    ) -> Sequence[Ticket]: ...

    async def list_transitions(self, ticket_key: str) -> Sequence[TransitionCandidate]: ...

    async def apply_transition(self, ticket_key: str, transition: TransitionCandidate) -> None: ...

    async def update_fields(self, ticket_key: str, delta: FieldDelta) -> None: ...

    async def add_comment(self, ticket_key: str, text: str) -> None: ...

    async def assign(self, ticket_key: str, account_id: str) -> None: ...


__all__ = ["ShipmentLookup", "TicketTracker"]
