from __future__ import annotations

import pytest

from shipsync.domain.model import Phase
from shipsync.domain.transitions import (
    normalize_status_name,
    resolve_transition,
    status_matches_phase,
)
from tests.support.shipments import transition


def test_normalize_status_name_drops_case_spacing_and_punctuation() -> None:
    assert normalize_status_name("RTO IN - TRANSIT") == "rtointransit"
    assert normalize_status_name("  Return_In-Transit ") == "returnintransit"
    assert normalize_status_name(None) == ""


@pytest.mark.parametrize(
    ("status", "phase"),
    [
        ("IN - TRANSIT", Phase.IN_TRANSIT),
        ("In Transit", Phase.IN_TRANSIT),
        ("out for delivery", Phase.OUT_FOR_DELIVERY),
        ("Return In-Transit", Phase.RETURN_IN_TRANSIT),
        ("Return In Transit", Phase.RETURN_IN_TRANSIT),
        ("RTO IN-TRANSIT", Phase.RETURN_IN_TRANSIT),
        ("rto delivered", Phase.RETURN_DELIVERED),
    ],
)
def test_status_matches_phase_aliases(status: str, phase: Phase) -> None:
    assert status_matches_phase(status, phase)


def test_status_matches_phase_rejects_other_phases() -> None:
    assert not status_matches_phase("IN - TRANSIT", Phase.RETURN_IN_TRANSIT)
    assert not status_matches_phase("DELIVERED", Phase.RETURN_DELIVERED)
    assert not status_matches_phase("", Phase.DELIVERED)
    assert not status_matches_phase("UNKNOWN", Phase.UNKNOWN)


def test_exact_alias_wins_in_offered_order() -> None:
    offered = [
        transition("Start Progress", "11"),
        transition("In Transit", "21"),
        transition("IN - TRANSIT", "31"),
    ]

    chosen = resolve_transition(offered, Phase.IN_TRANSIT)

    assert chosen is not None
    assert chosen.id == "21"


def test_return_in_transit_resolves_workflow_alias() -> None:
    offered = [transition("DELIVERED", "41"), transition("Return In-Transit", "51")]

    chosen = resolve_transition(offered, Phase.RETURN_IN_TRANSIT)

    assert chosen is not None
    assert chosen.id == "51"


def test_return_in_transit_falls_back_to_fuzzy_match() -> None:
    offered = [transition("Delivered", "41"), transition("Moved to RTO (transit)", "61")]

    chosen = resolve_transition(offered, Phase.RETURN_IN_TRANSIT)

    assert chosen is not None
    assert chosen.id == "61"


def test_fuzzy_match_is_limited_to_return_in_transit() -> None:
    offered = [transition("Courier delivered it", "71")]

    assert resolve_transition(offered, Phase.DELIVERED) is None


def test_no_matching_transition_returns_none() -> None:
    offered = [transition("Done", "1"), transition("In Review", "2")]

    assert resolve_transition(offered, Phase.RETURN_DELIVERED) is None
    assert resolve_transition(offered, Phase.UNKNOWN) is None
    assert resolve_transition([], Phase.IN_TRANSIT) is None


def test_status_reached_by_fuzzy_return_match_counts_as_in_phase() -> None:
    offered = [transition("RTO - Transit", "81")]
    chosen = resolve_transition(offered, Phase.RETURN_IN_TRANSIT)
    assert chosen is not None

    assert status_matches_phase(chosen.target_status, Phase.RETURN_IN_TRANSIT)
    assert not status_matches_phase(chosen.target_status, Phase.IN_TRANSIT)
