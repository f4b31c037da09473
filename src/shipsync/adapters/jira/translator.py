"""Translate between Jira payloads and domain tickets/transitions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, cast

from shipsync.domain.model import Ticket, TicketField, TransitionCandidate

from .schema import IssuePayload, TransitionPayload

if TYPE_CHECKING:
    from shipsync.domain.model import FieldDelta


def _adf_text(node: Mapping[str, object]) -> str:
    """Flatten an Atlassian Document Format node to plain text."""

    text = node.get("text")
    if isinstance(text, str):
        return text
    attrs = node.get("attrs")
    if node.get("type") == "inlineCard" and isinstance(attrs, Mapping):
        url = cast(Mapping[str, object], attrs).get("url")
        return url if isinstance(url, str) else ""
    content = node.get("content")
    if not isinstance(content, list):
        return ""
    parts = [
        _adf_text(cast(Mapping[str, object], child))
        for child in content
        if isinstance(child, Mapping)
    ]
    if node.get("type") == "doc":
        return "\n".join(part for part in parts if part)
    return "".join(parts)


def field_text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, Mapping):
        mapping = cast(Mapping[str, object], value)
        if "type" in mapping and "content" in mapping:
            return _adf_text(mapping).strip() or None
        for key in ("value", "name"):
            inner = mapping.get(key)
            if isinstance(inner, str):
                return inner.strip() or None
        return None
    return str(value)


def parse_ticket(
    payload: IssuePayload | Mapping[str, object],
    *,
    tracking_field: str,
    field_ids: Mapping[TicketField, str],
) -> Ticket:
    issue = payload if isinstance(payload, IssuePayload) else IssuePayload.model_validate(payload)
    return Ticket(
        key=issue.key,
        status=issue.status_name,
        tracking_value=field_text(issue.fields.get(tracking_field)),
        fields={
            ticket_field: field_text(issue.fields.get(field_id))
            for ticket_field, field_id in field_ids.items()
        },
    )


def parse_transition(payload: TransitionPayload | Mapping[str, object]) -> TransitionCandidate:
    transition = (
        payload
        if isinstance(payload, TransitionPayload)
        else TransitionPayload.model_validate(payload)
    )
    target = transition.to.name if transition.to is not None else transition.name
    return TransitionCandidate(id=transition.id, name=transition.name, target_status=target)


def delta_to_fields(delta: FieldDelta, field_ids: Mapping[TicketField, str]) -> dict[str, str]:
    missing = [ticket_field for ticket_field in delta if ticket_field not in field_ids]
    if missing:
        raise KeyError(f"No Jira field configured for: {', '.join(sorted(missing))}")
    return {field_ids[ticket_field]: value for ticket_field, value in delta.items()}


def comment_body(text: str) -> dict[str, object]:
    """Single-paragraph ADF comment body."""

    return {
        "body": {
            "type": "doc",
            "version": 1,
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
        }
    }
