"""Reconciliation driver: bring each candidate ticket in line with its shipment.

Per ticket the driver walks a fixed sequence (extract AWB, fetch the courier
snapshot, classify, compute the field delta, then either a field-only update
or transition + fields + assignee + comment) and ends in one
:class:`TicketOutcome`. Every input is read fresh each run, so re-running over
an unchanged shipment produces no writes.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .classification import ClassificationSignals, classify
from .fields import reconcile_fields
from .identifiers import extract_tracking_number
from .model import Phase
from .transitions import resolve_transition, status_matches_phase

if TYPE_CHECKING:
    from shipsync.config.sync import SyncConfig

    from .model import ShipmentRecord, Ticket
    from .ports import ShipmentLookup, TicketTracker

log = getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TicketOutcome(StrEnum):
    UPDATED = "updated"
    SKIPPED_NO_CHANGE = "skipped_no_change"
    SKIPPED_NO_IDENTIFIER = "skipped_no_identifier"
    SKIPPED_NO_TRACKING = "skipped_no_tracking"
    SKIPPED_UNKNOWN_PHASE = "skipped_unknown_phase"
    SKIPPED_NO_TRANSITION = "skipped_no_transition"
    FILTERED = "filtered"
    FAILED = "failed"

    @property
    def is_skip(self) -> bool:
        return self.value.startswith("skipped_")


@dataclass(slots=True)
class RunSummary:
    """Outcome per ticket key for one run."""

    outcomes: dict[str, TicketOutcome] = field(default_factory=dict)

    def record(self, ticket_key: str, outcome: TicketOutcome) -> None:
        self.outcomes[ticket_key] = outcome

    def count(self, outcome: TicketOutcome) -> int:
        return Counter(self.outcomes.values())[outcome]

    @property
    def updated(self) -> int:
        return self.count(TicketOutcome.UPDATED)

    @property
    def skipped(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome.is_skip)

    @property
    def failed(self) -> int:
        return self.count(TicketOutcome.FAILED)


def phase_comment(phase: Phase, record: ShipmentRecord, now: datetime) -> str | None:
    """Comment posted after a successful transition into ``phase``."""

    stamp = now.isoformat()
    if phase is Phase.IN_TRANSIT:
        return f"Order is now in transit as of {stamp}"
    if phase is Phase.OUT_FOR_DELIVERY:
        return f"Order is out for delivery as of {stamp}"
    if phase is Phase.NON_DELIVERY_REPORT:
        return f"Order marked as NDR (Non-Delivery Report) as of {stamp}"
    if phase is Phase.RETURN_IN_TRANSIT:
        signals = ClassificationSignals.from_record(record)
        return (
            f"Order is now RTO in transit as of {stamp} "
            f"(Signals: StatusType={signals.status_type or '?'}, "
            f"ReverseInTransit={str(signals.reverse_in_transit).lower()}, "
            f"RTOStartedDate={signals.rto_started_at or 'N/A'}, "
            f"hasRTScan={str(signals.has_recent_return_scan).lower()})"
        )
    if phase is Phase.RETURN_DELIVERED:
        return f"Order RTO delivered as of {stamp}"
    if phase is Phase.DELIVERED:
        return f"Order successfully delivered on {stamp}"
    return None


@dataclass(slots=True)
class ReconciliationDriver:
    tracking: ShipmentLookup
    tracker: TicketTracker
    config: SyncConfig
    sleep: Sleeper = asyncio.sleep
    clock: Clock = _utcnow

    async def run(self) -> RunSummary:
        """Reconcile every candidate ticket; per-ticket failures never abort the run."""

        summary = RunSummary()
        log.info("Sync started at %s", self.clock().isoformat())
        tickets = await self.tracker.search_tickets(
            created_since_days=self.config.created_since_days,
            issue_key=self.config.debug_issue_key,
        )
        if not tickets:
            log.info("No issues found for the current window")

        for index, ticket in enumerate(tickets):
            try:
                outcome = await self.reconcile_ticket(ticket)
            except Exception:
                log.exception("Error handling %s", ticket.key)
                outcome = TicketOutcome.FAILED
            summary.record(ticket.key, outcome)

            made_requests = outcome not in {
                TicketOutcome.FILTERED,
                TicketOutcome.SKIPPED_NO_IDENTIFIER,
            }
            if made_requests and index < len(tickets) - 1:
                await self.sleep(self.config.sleep_seconds)

        log.info(
            "Summary: %s updated, %s skipped, %s failed",
            summary.updated,
            summary.skipped,
            summary.failed,
        )
        return summary

    async def reconcile_ticket(self, ticket: Ticket) -> TicketOutcome:
        awb = extract_tracking_number(ticket.tracking_value)
        if self.config.debug_awb and awb != self.config.debug_awb:
            return TicketOutcome.FILTERED
        if awb is None:
            log.warning("No valid AWB for %s", ticket.key)
            return TicketOutcome.SKIPPED_NO_IDENTIFIER

        record = await self.tracking.fetch_shipment(awb)
        if record is None:
            log.warning("No tracking payload for AWB %s (%s)", awb, ticket.key)
            return TicketOutcome.SKIPPED_NO_TRACKING

        phase = classify(record)
        signals = ClassificationSignals.from_record(record)
        log.info(
            "[decision] %s awb=%s cur=%r -> new=%r type=%s reverse=%s rtoStart=%s hasRTScan=%s",
            ticket.key,
            awb,
            ticket.status,
            phase.value,
            signals.status_type,
            signals.reverse_in_transit,
            signals.rto_started_at is not None,
            signals.has_recent_return_scan,
        )
        if phase is Phase.UNKNOWN:
            log.warning("Unknown status %r for AWB %s (%s)", record.status, awb, ticket.key)
            return TicketOutcome.SKIPPED_UNKNOWN_PHASE

        delta = reconcile_fields(ticket, record, phase, enabled=self.config.field_ids)

        if status_matches_phase(ticket.status, phase):
            if delta:
                await self.tracker.update_fields(ticket.key, delta)
                log.info("Fields updated for %s (no transition): %s", ticket.key, sorted(delta))
            log.info("Skipping transition for %s, already %r", ticket.key, phase.value)
            return TicketOutcome.SKIPPED_NO_CHANGE

        transitions = await self.tracker.list_transitions(ticket.key)
        if self.config.log_transitions:
            log.info(
                "Transitions for %s: %s",
                ticket.key,
                [candidate.target_status for candidate in transitions],
            )
        transition = resolve_transition(transitions, phase)
        if transition is None:
            # Never write fields or comments for a state the ticket did not reach.
            log.warning(
                "No matching transition for %r on %s. Available: %s",
                phase.value,
                ticket.key,
                [candidate.target_status for candidate in transitions],
            )
            return TicketOutcome.SKIPPED_NO_TRANSITION

        await self.tracker.apply_transition(ticket.key, transition)
        log.info("Status updated to %r for %s", phase.value, ticket.key)

        if delta:
            await self.tracker.update_fields(ticket.key, delta)
            log.info("Custom fields updated for %s: %s", ticket.key, sorted(delta))

        if phase.is_terminal and self.config.post_delivery_assignee:
            await self.tracker.assign(ticket.key, self.config.post_delivery_assignee)
            log.info("Assigned %s to post-delivery assignee", ticket.key)

        comment = phase_comment(phase, record, self.clock())
        if comment:
            await self.tracker.add_comment(ticket.key, comment)
        return TicketOutcome.UPDATED


__all__ = ["ReconciliationDriver", "RunSummary", "TicketOutcome", "phase_comment"]
