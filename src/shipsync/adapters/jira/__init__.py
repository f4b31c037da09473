"""Public interface for the Jira adapter."""

from __future__ import annotations

from .client import JiraAPIError, JiraClient
from .jql import candidate_queries, jql_field
from .translator import comment_body, field_text, parse_ticket, parse_transition

__all__ = [
    "JiraAPIError",
    "JiraClient",
    "candidate_queries",
    "comment_body",
    "field_text",
    "jql_field",
    "parse_ticket",
    "parse_transition",
]
