"""Map a courier snapshot onto one canonical :class:`Phase`.

Carrier signals overlap: a shipment can carry an old RTO-start flag next to a
later delivery timestamp, or an instruction that reads like a cancellation on
a parcel that is still moving forward. Classification is therefore a strictly
ordered cascade. :data:`RULES` is evaluated top to bottom and the first
matching rule decides the phase; when none matches, the raw status label is
looked up in :data:`STATUS_LABELS`, and anything still unmapped is
:attr:`Phase.UNKNOWN`.

Precedence, most authoritative first:

1. terminal return (return completed)
2. terminal forward delivery
3. return in progress
4. forward keyword heuristics on the instruction text
5. return-implying keyword heuristics on the instruction text
6. status label table
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .model import Phase

if TYPE_CHECKING:
    from .model import ShipmentRecord

TERMINAL_SCAN_TYPE = "DL"
RETURN_SCAN_TYPES = frozenset({"RT", "RTO", "RET"})
RECENT_SCAN_LOOKBACK = 8

_RTO_WORD = re.compile(r"\brto\b", re.IGNORECASE)
_DELIVERED_WORD = re.compile(r"\bdelivered\b", re.IGNORECASE)
# negated or future forms such as "could not be delivered" or "yet to be delivered"
_DELIVERY_PENDING = re.compile(r"\b(?:not|never|be|yet)[\s-]+$", re.IGNORECASE)
_RETURN_ACCEPTED = "return accepted"

FORWARD_KEYWORDS: tuple[str, ...] = (
    "consignee will collect",
    "consignee to collect from branch",
    "shipment received at facility",
    "consignee unavailable",
    "agent remark incorrect",
    "arriving today",
    "office/institute closed",
    "agent remark verified",
    "maximum attempts reached",
    "package missing in audit",
    "package found in audit",
    "delivery rescheduled by customer",
    "delayed due to weather conditions",
    "natural disaster",
)

RETURN_KEYWORDS: tuple[tuple[str, Phase], ...] = (
    ("whatsapp verified cancellation", Phase.RETURN_IN_TRANSIT),
    ("code verified cancellation", Phase.RETURN_IN_TRANSIT),
    ("dispatched for rto", Phase.RETURN_IN_TRANSIT),
    (_RETURN_ACCEPTED, Phase.RETURN_DELIVERED),
    ("consignee refused to accept/order cancelled", Phase.RETURN_IN_TRANSIT),
    ("not attempted", Phase.NON_DELIVERY_REPORT),
    ("ntd updated", Phase.RETURN_IN_TRANSIT),
    ("recipient unavailable.establishment closed", Phase.RETURN_IN_TRANSIT),
)

STATUS_LABELS: dict[str, Phase] = {
    "Ready for pickup": Phase.PICKUP_SCHEDULED,
    "Manifested": Phase.PICKUP_SCHEDULED,
    "Pending": Phase.PICKUP_SCHEDULED,
    "In Transit": Phase.IN_TRANSIT,
    "Delayed": Phase.IN_TRANSIT,
    "DELAYED": Phase.IN_TRANSIT,
    "On Time": Phase.IN_TRANSIT,
    "Dispatched": Phase.IN_TRANSIT,
    "Out for delivery": Phase.OUT_FOR_DELIVERY,
    "Delivered": Phase.DELIVERED,
    "RTO": Phase.RETURN_IN_TRANSIT,
    "RTO - In Transit": Phase.RETURN_IN_TRANSIT,
    "In Transit For Return": Phase.RETURN_IN_TRANSIT,
    "RTO - Returned": Phase.RETURN_DELIVERED,
    "Cancelled": Phase.PICKUP_EXCEPTION,
    "Shipment delivery cancelled via OTP": Phase.PICKUP_EXCEPTION,
    "Not Picked": Phase.PICKUP_EXCEPTION,
    "NDR": Phase.NON_DELIVERY_REPORT,
}


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    name: str
    phase: Phase
    matches: Callable[[ShipmentRecord], bool]


def has_recent_return_scan(record: ShipmentRecord, lookback: int = RECENT_SCAN_LOOKBACK) -> bool:
    if lookback <= 0:
        return False
    return any(scan.scan_type.upper() == "RT" for scan in record.scans[-lookback:])


def has_terminal_return(record: ShipmentRecord) -> bool:
    if record.returned_at is not None:
        return True
    if record.status_type.upper() == TERMINAL_SCAN_TYPE and (
        _RTO_WORD.search(record.status) or _RETURN_ACCEPTED in record.instructions.lower()
    ):
        return True
    return any(
        scan.scan_type.upper() == TERMINAL_SCAN_TYPE
        and (_RTO_WORD.search(scan.scan) or _RETURN_ACCEPTED in scan.instructions.lower())
        for scan in record.scans
    )


def _reports_delivery(text: str) -> bool:
    """Completed forward delivery in free text, ignoring negated or future forms."""

    if _RTO_WORD.search(text):
        return False
    return any(
        not _DELIVERY_PENDING.search(text[: match.start()])
        for match in _DELIVERED_WORD.finditer(text)
    )


def has_terminal_delivery(record: ShipmentRecord) -> bool:
    if record.delivered_at is not None:
        return True
    if record.status_type.upper() == TERMINAL_SCAN_TYPE:
        return True
    if record.scans and record.scans[-1].scan_type.upper() == TERMINAL_SCAN_TYPE:
        return True
    return any(_reports_delivery(text) for text in (record.status, record.instructions))


def is_return_in_progress(record: ShipmentRecord) -> bool:
    return (
        record.status_type.upper() in RETURN_SCAN_TYPES
        or record.reverse_in_transit
        or record.rto_started_at is not None
        or has_recent_return_scan(record)
        or bool(_RTO_WORD.search(record.status))
        or bool(_RTO_WORD.search(record.instructions))
    )


def _instruction_contains(keyword: str) -> Callable[[ShipmentRecord], bool]:
    def matches(record: ShipmentRecord) -> bool:
        return keyword in record.instructions.lower()

    return matches


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("terminal_return", Phase.RETURN_DELIVERED, has_terminal_return),
    ClassificationRule("terminal_delivery", Phase.DELIVERED, has_terminal_delivery),
    ClassificationRule("return_in_progress", Phase.RETURN_IN_TRANSIT, is_return_in_progress),
    *(
        ClassificationRule(f"forward:{keyword}", Phase.IN_TRANSIT, _instruction_contains(keyword))
        for keyword in FORWARD_KEYWORDS
    ),
    *(
        ClassificationRule(f"return:{keyword}", phase, _instruction_contains(keyword))
        for keyword, phase in RETURN_KEYWORDS
    ),
)


def matching_rule(
    record: ShipmentRecord,
    rules: tuple[ClassificationRule, ...] = RULES,
) -> ClassificationRule | None:
    """Return the first rule that matches ``record``, if any."""

    for rule in rules:
        if rule.matches(record):
            return rule
    return None


def classify(record: ShipmentRecord) -> Phase:
    """Classify ``record`` into exactly one phase; pure, no memory of prior runs."""

    rule = matching_rule(record)
    if rule is not None:
        return rule.phase
    return STATUS_LABELS.get(record.status.strip(), Phase.UNKNOWN)


@dataclass(frozen=True, slots=True)
class ClassificationSignals:
    """Raw return-related signals, surfaced for decision logs and comments."""

    status_type: str
    reverse_in_transit: bool
    rto_started_at: str | None
    has_recent_return_scan: bool

    @classmethod
    def from_record(cls, record: ShipmentRecord) -> ClassificationSignals:
        return cls(
            status_type=record.status_type,
            reverse_in_transit=record.reverse_in_transit,
            rto_started_at=record.rto_started_at.isoformat() if record.rto_started_at else None,
            has_recent_return_scan=has_recent_return_scan(record),
        )


__all__ = [
    "FORWARD_KEYWORDS",
    "RETURN_KEYWORDS",
    "RULES",
    "STATUS_LABELS",
    "ClassificationRule",
    "ClassificationSignals",
    "classify",
    "has_recent_return_scan",
    "has_terminal_delivery",
    "has_terminal_return",
    "is_return_in_progress",
    "matching_rule",
]
