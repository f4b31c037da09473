"""JQL builders for selecting candidate tickets."""

from __future__ import annotations

import re
from datetime import date, timedelta

from shipsync.domain.model import Phase

_CUSTOM_FIELD = re.compile(r"^customfield_(\d+)$")


def jql_field(field_id: str) -> str:
    """``customfield_12345`` -> ``cf[12345]``; anything else is quoted as a field name."""

    match = _CUSTOM_FIELD.match(field_id)
    if match:
        return f"cf[{match.group(1)}]"
    return '"{}"'.format(field_id.replace('"', '\\"'))


def candidate_queries(
    *,
    project: str,
    tracking_field: str,
    created_since_days: int,
    today: date,
    issue_key: str | None = None,
) -> list[str]:
    """Pickup-scheduled tickets first, then every other non-final ticket.

    Delivered tickets stay eligible so a forward delivery that turns into a
    return can still be corrected.
    """

    if issue_key:
        return [f"key = {issue_key}"]

    since = (today - timedelta(days=created_since_days)).isoformat()
    base = (
        f'project = "{project}" AND {jql_field(tracking_field)} IS NOT EMPTY '
        f'AND created >= "{since}"'
    )
    pickup = f'"{Phase.PICKUP_SCHEDULED.value}"'
    excluded = f'"{Phase.RETURN_DELIVERED.value}", {pickup}'
    return [
        f"{base} AND status = {pickup} ORDER BY updated DESC",
        f"{base} AND status NOT IN ({excluded}) ORDER BY updated DESC",
    ]
