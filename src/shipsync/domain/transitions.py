"""Resolve a canonical phase to one of the workflow transitions a ticket offers."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .model import Phase

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .model import TransitionCandidate

_NON_ALNUM = re.compile(r"[\W_]+")

RETURN_MARKERS = ("rto", "return")
MOVEMENT_MARKERS = ("transit",)

STATUS_ALIASES: dict[Phase, tuple[str, ...]] = {
    Phase.PICKUP_SCHEDULED: ("PICKUP SCHEDULED", "Pickup Scheduled"),
    Phase.IN_TRANSIT: ("IN - TRANSIT", "IN-TRANSIT", "IN TRANSIT"),
    Phase.OUT_FOR_DELIVERY: ("OUT FOR DELIVERY",),
    Phase.DELIVERED: ("DELIVERED",),
    Phase.NON_DELIVERY_REPORT: ("NDR", "Non-Delivery Report"),
    Phase.RETURN_IN_TRANSIT: (
        "RTO IN - TRANSIT",
        "RTO IN-TRANSIT",
        "RTO IN TRANSIT",
        "Return In-Transit",
        "Return In Transit",
    ),
    Phase.RETURN_DELIVERED: ("RTO DELIVERED", "RETURN DELIVERED"),
    Phase.PICKUP_EXCEPTION: ("PICKUP EXCEPTION - DELHIVERY", "PICKUP EXCEPTION"),
}


def normalize_status_name(value: str | None) -> str:
    """Lowercase and drop whitespace/punctuation: ``"RTO IN - TRANSIT"`` -> ``"rtointransit"``."""

    return _NON_ALNUM.sub("", (value or "").lower())


def phase_aliases(phase: Phase) -> frozenset[str]:
    names = (phase.value, *STATUS_ALIASES.get(phase, ()))
    return frozenset(normalize_status_name(name) for name in names)


def _looks_like_return_transit(normalized: str) -> bool:
    return any(marker in normalized for marker in RETURN_MARKERS) and any(
        marker in normalized for marker in MOVEMENT_MARKERS
    )


def status_matches_phase(status: str | None, phase: Phase) -> bool:
    """Whether a ticket already sits in the tracker status for ``phase``.

    Accepts every status :func:`resolve_transition` could have moved the
    ticket into, fuzzy return-in-transit targets included.
    """

    if phase is Phase.UNKNOWN:
        return False
    normalized = normalize_status_name(status)
    if not normalized:
        return False
    if normalized in phase_aliases(phase):
        return True
    return phase is Phase.RETURN_IN_TRANSIT and _looks_like_return_transit(normalized)


def resolve_transition(
    available: Iterable[TransitionCandidate],
    phase: Phase,
) -> TransitionCandidate | None:
    """Pick the transition that moves a ticket into ``phase``.

    Exact alias matches win, in the order the tracker offers them. Only the
    return-in-transit phase falls back to a fuzzy match on the target name.
    ``None`` means the phase cannot be applied as a workflow move this run.
    """

    if phase is Phase.UNKNOWN:
        return None
    candidates = list(available)
    aliases = phase_aliases(phase)
    for candidate in candidates:
        if normalize_status_name(candidate.target_status) in aliases:
            return candidate

    if phase is Phase.RETURN_IN_TRANSIT:
        for candidate in candidates:
            if _looks_like_return_transit(normalize_status_name(candidate.target_status)):
                return candidate
    return None


__all__ = [
    "STATUS_ALIASES",
    "normalize_status_name",
    "phase_aliases",
    "resolve_transition",
    "status_matches_phase",
]
