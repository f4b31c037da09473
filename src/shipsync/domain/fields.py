"""Compute the minimal set of auxiliary-field writes for one ticket.

Each :class:`TicketField` has a candidate extractor and a :class:`FieldPolicy`.
A candidate is written only when it differs from the ticket's stored value;
write-once fields are additionally skipped as soon as the ticket holds any
value for them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from .model import Phase, ScanEvent, TicketField

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from .model import FieldDelta, ShipmentRecord, Ticket

VERIFIED_CANCELLATION = "verified cancellation"
OUT_FOR_DELIVERY = "out for delivery"


class FieldPolicy(StrEnum):
    WRITE_ONCE = "write_once"
    OVERWRITE = "overwrite"


def format_date(value: datetime | None) -> str | None:
    return value.date().isoformat() if value is not None else None


@dataclass(frozen=True, slots=True)
class InstructionInfo:
    instruction: str
    when: datetime | None = None
    where: str | None = None
    code: str | None = None

    def render(self) -> str:
        parts = [f'"{self.instruction}"']
        if self.where:
            parts.append(f"@ {self.where}")
        if self.code:
            parts.append(f"[{self.code}]")
        if self.when is not None:
            parts.append(f"on {self.when.isoformat()}")
        return " ".join(parts)


def _scan_sort_key(scan: ScanEvent) -> tuple[bool, float]:
    return (scan.timestamp is not None, scan.timestamp.timestamp() if scan.timestamp else 0.0)


def latest_instruction(record: ShipmentRecord) -> InstructionInfo | None:
    """Most recent instruction: the status block first, then the newest scan."""

    instruction = record.instructions.strip()
    if instruction:
        return InstructionInfo(
            instruction=instruction,
            when=record.status_timestamp or record.delivered_at or record.destination_received_at,
            where=record.status_location,
            code=record.status_code,
        )

    candidates = [scan for scan in record.scans if scan.instructions.strip() or scan.scan.strip()]
    if not candidates:
        return None
    # stable on ties: the later scan in carrier order wins
    latest = max(reversed(candidates), key=_scan_sort_key)
    return InstructionInfo(
        instruction=(latest.instructions or latest.scan).strip(),
        when=latest.timestamp,
        where=latest.location,
        code=latest.status_code,
    )


def verified_cancellation_scan(record: ShipmentRecord) -> ScanEvent | None:
    """Earliest scan recording a verified cancellation, if any."""

    for scan in record.scans:
        if VERIFIED_CANCELLATION in scan.instructions.lower():
            return scan
    return None


def out_for_delivery_at(record: ShipmentRecord) -> datetime | None:
    if OUT_FOR_DELIVERY in f"{record.status} {record.instructions}".lower():
        if record.status_timestamp is not None:
            return record.status_timestamp
    for scan in reversed(record.scans):
        if OUT_FOR_DELIVERY in f"{scan.scan} {scan.instructions}".lower() and scan.timestamp:
            return scan.timestamp
    return None


def _dispatch_date(record: ShipmentRecord, _phase: Phase) -> str | None:
    return format_date(record.dispatched_at)


def _delivery_date(record: ShipmentRecord, phase: Phase) -> str | None:
    if phase is not Phase.DELIVERED:
        return None
    return format_date(record.delivered_at)


def _return_delivered_date(record: ShipmentRecord, phase: Phase) -> str | None:
    if phase is not Phase.RETURN_DELIVERED:
        return None
    return format_date(record.returned_at)


def _promised_date(record: ShipmentRecord, _phase: Phase) -> str | None:
    return format_date(record.promised_delivery_at or record.expected_delivery_at)


def _latest_promised_date(record: ShipmentRecord, _phase: Phase) -> str | None:
    return format_date(record.expected_delivery_at or record.promised_delivery_at)


def _return_reason(record: ShipmentRecord, phase: Phase) -> str | None:
    if not phase.is_return:
        return None
    scan = verified_cancellation_scan(record)
    return scan.instructions.strip() if scan else None


def _return_initiated_date(record: ShipmentRecord, phase: Phase) -> str | None:
    if not phase.is_return:
        return None
    scan = verified_cancellation_scan(record)
    return format_date(scan.timestamp) if scan else None


def _out_for_delivery_date(record: ShipmentRecord, _phase: Phase) -> str | None:
    return format_date(out_for_delivery_at(record))


def _latest_instruction(record: ShipmentRecord, _phase: Phase) -> str | None:
    info = latest_instruction(record)
    return info.render() if info else None


@dataclass(frozen=True, slots=True)
class FieldRule:
    policy: FieldPolicy
    candidate: Callable[[ShipmentRecord, Phase], str | None]


FIELD_RULES: dict[TicketField, FieldRule] = {
    TicketField.DISPATCH_DATE: FieldRule(FieldPolicy.OVERWRITE, _dispatch_date),
    TicketField.DELIVERY_DATE: FieldRule(FieldPolicy.OVERWRITE, _delivery_date),
    TicketField.RETURN_DELIVERED_DATE: FieldRule(FieldPolicy.OVERWRITE, _return_delivered_date),
    TicketField.PROMISED_DELIVERY_DATE: FieldRule(FieldPolicy.WRITE_ONCE, _promised_date),
    TicketField.LATEST_PROMISED_DELIVERY_DATE: FieldRule(
        FieldPolicy.OVERWRITE, _latest_promised_date
    ),
    TicketField.RETURN_REASON: FieldRule(FieldPolicy.WRITE_ONCE, _return_reason),
    TicketField.RETURN_INITIATED_DATE: FieldRule(FieldPolicy.WRITE_ONCE, _return_initiated_date),
    TicketField.OUT_FOR_DELIVERY_DATE: FieldRule(FieldPolicy.WRITE_ONCE, _out_for_delivery_date),
    TicketField.LATEST_INSTRUCTION: FieldRule(FieldPolicy.OVERWRITE, _latest_instruction),
}


def reconcile_fields(
    ticket: Ticket,
    record: ShipmentRecord,
    phase: Phase,
    *,
    enabled: Iterable[TicketField] | None = None,
) -> FieldDelta:
    """Return the field writes needed to bring ``ticket`` in line with ``record``.

    An empty mapping means nothing changes this run. ``enabled`` limits the
    computation to the fields the deployment has configured.
    """

    selected = set(FIELD_RULES) if enabled is None else set(enabled)
    delta: FieldDelta = {}
    for ticket_field, rule in FIELD_RULES.items():
        if ticket_field not in selected:
            continue
        current = ticket.value(ticket_field)
        if rule.policy is FieldPolicy.WRITE_ONCE and current:
            continue
        candidate = rule.candidate(record, phase)
        if candidate is None or candidate == current:
            continue
        delta[ticket_field] = candidate
    return delta


__all__ = [
    "FIELD_RULES",
    "FieldPolicy",
    "FieldRule",
    "InstructionInfo",
    "format_date",
    "latest_instruction",
    "out_for_delivery_at",
    "reconcile_fields",
    "verified_cancellation_scan",
]
