"""Domain types shared by the classifier, reconcilers and the driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


class Phase(StrEnum):
    """Canonical shipment phase, valued by the tracker's status label."""

    PICKUP_SCHEDULED = "PICKUP SCHEDULED"
    IN_TRANSIT = "IN - TRANSIT"
    OUT_FOR_DELIVERY = "OUT FOR DELIVERY"
    DELIVERED = "DELIVERED"
    NON_DELIVERY_REPORT = "NDR"
    RETURN_IN_TRANSIT = "RTO IN - TRANSIT"
    RETURN_DELIVERED = "RTO DELIVERED"
    PICKUP_EXCEPTION = "PICKUP EXCEPTION - DELHIVERY"
    UNKNOWN = "UNKNOWN"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES

    @property
    def is_return(self) -> bool:
        return self in RETURN_PHASES


TERMINAL_PHASES = frozenset({Phase.DELIVERED, Phase.RETURN_DELIVERED})
RETURN_PHASES = frozenset({Phase.RETURN_IN_TRANSIT, Phase.RETURN_DELIVERED})


class TicketField(StrEnum):
    """Auxiliary ticket fields maintained by reconciliation."""

    DISPATCH_DATE = "dispatch_date"
    DELIVERY_DATE = "delivery_date"
    RETURN_DELIVERED_DATE = "return_delivered_date"
    PROMISED_DELIVERY_DATE = "promised_delivery_date"
    LATEST_PROMISED_DELIVERY_DATE = "latest_promised_delivery_date"
    RETURN_REASON = "return_reason"
    RETURN_INITIATED_DATE = "return_initiated_date"
    OUT_FOR_DELIVERY_DATE = "out_for_delivery_date"
    LATEST_INSTRUCTION = "latest_instruction"


@dataclass(frozen=True, slots=True)
class ScanEvent:
    """One carrier scan in a shipment's history."""

    scan_type: str = ""
    scan: str = ""
    instructions: str = ""
    timestamp: datetime | None = None
    location: str | None = None
    status_code: str | None = None


@dataclass(frozen=True, slots=True)
class ShipmentRecord:
    """Courier snapshot for one tracking number, as fetched in a single poll."""

    tracking_number: str
    status: str = ""
    status_type: str = ""
    instructions: str = ""
    status_timestamp: datetime | None = None
    status_location: str | None = None
    status_code: str | None = None
    dispatched_at: datetime | None = None
    destination_received_at: datetime | None = None
    delivered_at: datetime | None = None
    returned_at: datetime | None = None
    rto_started_at: datetime | None = None
    reverse_in_transit: bool = False
    promised_delivery_at: datetime | None = None
    expected_delivery_at: datetime | None = None
    scans: tuple[ScanEvent, ...] = ()


@dataclass(frozen=True, slots=True)
class Ticket:
    """Tracker issue as read at the start of its reconciliation."""

    key: str
    status: str
    tracking_value: str | None = None
    fields: Mapping[TicketField, str | None] = field(default_factory=dict)

    def value(self, ticket_field: TicketField) -> str | None:
        return self.fields.get(ticket_field)


type FieldDelta = dict[TicketField, str]


@dataclass(frozen=True, slots=True)
class TransitionCandidate:
    """Workflow transition offered by the tracker for one ticket."""

    id: str
    name: str
    target_status: str


__all__ = [
    "RETURN_PHASES",
    "TERMINAL_PHASES",
    "FieldDelta",
    "Phase",
    "ScanEvent",
    "ShipmentRecord",
    "Ticket",
    "TicketField",
    "TransitionCandidate",
]
