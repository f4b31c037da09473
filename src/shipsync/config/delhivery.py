"""Delhivery tracking API configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .http_resilience import NO_RETRY, RateLimit, ResilienceConfig

DELHIVERY_BASE_URL = "https://track.delhivery.com"
DEFAULT_TRACKING_ATTEMPTS = 3
DEFAULT_TRACKING_RETRY_DELAY_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class DelhiveryConfig:
    """Holds Delhivery API configuration values."""

    token: str
    attempts: int = DEFAULT_TRACKING_ATTEMPTS
    retry_delay_seconds: float = DEFAULT_TRACKING_RETRY_DELAY_SECONDS
    resilience: ResilienceConfig = field(
        default_factory=lambda: delhivery_resilience_config(user_agent=None)
    )


def delhivery_resilience_config(*, user_agent: str | None) -> ResilienceConfig:
    # The tracking client runs its own fixed-delay attempt loop.
    return ResilienceConfig(
        name="delhivery",
        base_url=DELHIVERY_BASE_URL,
        retry=NO_RETRY,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        default_headers={"User-Agent": user_agent} if user_agent else None,
    )
