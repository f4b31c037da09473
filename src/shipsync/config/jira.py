"""Jira Cloud configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

JIRA_SEARCH_PAGE_SIZE = 50


@dataclass(frozen=True, slots=True)
class JiraConfig:
    """Holds Jira connection values."""

    domain: str
    email: str
    api_token: str
    project: str
    resilience: ResilienceConfig
    page_size: int = JIRA_SEARCH_PAGE_SIZE


def jira_resilience_config(domain: str, *, user_agent: str | None) -> ResilienceConfig:
    return ResilienceConfig(
        name="jira",
        base_url=domain.rstrip("/"),
        retry=RetryPolicy(total=3),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers={"User-Agent": user_agent} if user_agent else None,
    )
