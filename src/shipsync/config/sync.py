"""Reconciliation run settings and the aggregated application configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from shipsync import __version__
from shipsync.domain.model import TicketField

from .delhivery import DEFAULT_TRACKING_ATTEMPTS, DelhiveryConfig, delhivery_resilience_config
from .env import flag_env_var, int_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError
from .jira import JiraConfig, jira_resilience_config

DEFAULT_CREATED_SINCE_DAYS = 45
DEFAULT_SLEEP_MS = 200
DEFAULT_TRACKING_RETRY_DELAY_MS = 1000
DEFAULT_LATEST_INSTRUCTION_FIELD = "customfield_10288"
USER_AGENT = f"shipsync-delhivery-jira-sync/{__version__}"

REQUIRED_ENV_VARS: tuple[str, ...] = (
    "DELHIVERY_TOKEN",
    "JIRA_DOMAIN",
    "JIRA_EMAIL",
    "JIRA_API_TOKEN",
    "JIRA_PROJECT",
    "TRACKING_FIELD",
    "CUSTOMFIELD_DISPATCH_DATE",
    "CUSTOMFIELD_DELIVERY_DATE",
    "CUSTOMFIELD_RTO_DATE",
)

REQUIRED_FIELD_ENV_VARS: dict[TicketField, str] = {
    TicketField.DISPATCH_DATE: "CUSTOMFIELD_DISPATCH_DATE",
    TicketField.DELIVERY_DATE: "CUSTOMFIELD_DELIVERY_DATE",
    TicketField.RETURN_DELIVERED_DATE: "CUSTOMFIELD_RTO_DATE",
}

OPTIONAL_FIELD_ENV_VARS: dict[TicketField, str] = {
    TicketField.PROMISED_DELIVERY_DATE: "CUSTOMFIELD_PROMISED_DATE",
    TicketField.LATEST_PROMISED_DELIVERY_DATE: "CUSTOMFIELD_LATEST_PROMISED_DATE",
    TicketField.RETURN_REASON: "CUSTOMFIELD_RETURN_REASON",
    TicketField.RETURN_INITIATED_DATE: "CUSTOMFIELD_RETURN_INITIATED_DATE",
    TicketField.OUT_FOR_DELIVERY_DATE: "CUSTOMFIELD_OFD_DATE",
    TicketField.LATEST_INSTRUCTION: "CUSTOMFIELD_LATEST_INSTRUCTION",
}


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Knobs for one reconciliation run."""

    tracking_field: str
    field_ids: dict[TicketField, str] = field(default_factory=dict)
    created_since_days: int = DEFAULT_CREATED_SINCE_DAYS
    post_delivery_assignee: str | None = None
    sleep_seconds: float = DEFAULT_SLEEP_MS / 1000
    debug_issue_key: str | None = None
    debug_awb: str | None = None
    log_transitions: bool = False


@dataclass(frozen=True, slots=True)
class AppConfig:
    delhivery: DelhiveryConfig
    jira: JiraConfig
    sync: SyncConfig


def _field_ids(values: dict[str, str]) -> dict[TicketField, str]:
    field_ids = {
        ticket_field: values[env_name] for ticket_field, env_name in REQUIRED_FIELD_ENV_VARS.items()
    }
    for ticket_field, env_name in OPTIONAL_FIELD_ENV_VARS.items():
        default = (
            DEFAULT_LATEST_INSTRUCTION_FIELD
            if ticket_field is TicketField.LATEST_INSTRUCTION
            else None
        )
        field_id = optional_env_var(env_name, default)
        if field_id is not None:
            field_ids[ticket_field] = field_id
    return field_ids


def get_app_config() -> AppConfig:
    """Load and validate the full configuration from the environment.

    Every missing required variable is reported in a single
    :class:`MissingConfigurationError` so an operator can fix the deployment in
    one pass.
    """

    values = require_env_vars(REQUIRED_ENV_VARS)
    field_ids = _field_ids(values)
    if len(set(field_ids.values())) != len(field_ids):
        raise ConfigurationError("Auxiliary field ids must be distinct")

    delhivery = DelhiveryConfig(
        token=values["DELHIVERY_TOKEN"],
        attempts=int_env_var("TRACKING_ATTEMPTS", DEFAULT_TRACKING_ATTEMPTS, minimum=1),
        retry_delay_seconds=int_env_var(
            "TRACKING_RETRY_DELAY_MS", DEFAULT_TRACKING_RETRY_DELAY_MS
        )
        / 1000,
        resilience=delhivery_resilience_config(user_agent=USER_AGENT),
    )
    jira = JiraConfig(
        domain=values["JIRA_DOMAIN"].rstrip("/"),
        email=values["JIRA_EMAIL"],
        api_token=values["JIRA_API_TOKEN"],
        project=values["JIRA_PROJECT"],
        resilience=jira_resilience_config(values["JIRA_DOMAIN"], user_agent=USER_AGENT),
    )
    sync = SyncConfig(
        tracking_field=values["TRACKING_FIELD"],
        field_ids=field_ids,
        created_since_days=int_env_var("CREATED_SINCE_DAYS", DEFAULT_CREATED_SINCE_DAYS),
        post_delivery_assignee=optional_env_var("POST_DELIVERY_ASSIGNEE"),
        sleep_seconds=int_env_var("SLEEP_MS", DEFAULT_SLEEP_MS) / 1000,
        debug_issue_key=optional_env_var("DEBUG_ISSUE_KEY"),
        debug_awb=optional_env_var("DEBUG_AWB"),
        log_transitions=flag_env_var("LOG_TRANSITIONS"),
    )
    return AppConfig(delhivery=delhivery, jira=jira, sync=sync)
