"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from shipsync.adapters.delhivery import DelhiveryTrackingClient
from shipsync.adapters.jira import JiraClient
from shipsync.config import get_app_config
from shipsync.domain.reconciliation import ReconciliationDriver

if TYPE_CHECKING:
    from shipsync.config import AppConfig
    from shipsync.domain.reconciliation import RunSummary


log = getLogger(__name__)


async def reconcile_shipments_async(config: AppConfig) -> RunSummary:
    async with (
        DelhiveryTrackingClient(config=config.delhivery) as tracking,
        JiraClient(
            config=config.jira,
            tracking_field=config.sync.tracking_field,
            field_ids=config.sync.field_ids,
        ) as tracker,
    ):
        driver = ReconciliationDriver(tracking=tracking, tracker=tracker, config=config.sync)
        return await driver.run()


def reconcile_shipments(
    *,
    config: AppConfig | None = None,
    created_since_days: int | None = None,
    issue_key: str | None = None,
    awb: str | None = None,
) -> RunSummary:
    """Run one reconciliation pass over the eligible Jira tickets.

    Configuration is read from the environment unless given; a missing
    required value raises before any ticket is read.
    """

    effective = config or get_app_config()
    overrides: dict[str, object] = {}
    if created_since_days is not None:
        overrides["created_since_days"] = created_since_days
    if issue_key:
        overrides["debug_issue_key"] = issue_key
    if awb:
        overrides["debug_awb"] = awb
    if overrides:
        effective = replace(effective, sync=replace(effective.sync, **overrides))

    log.info(
        "Starting shipment sync: project=%s, created_since_days=%s, issue_key=%s, awb=%s",
        effective.jira.project,
        effective.sync.created_since_days,
        effective.sync.debug_issue_key,
        effective.sync.debug_awb,
    )
    if not effective.sync.post_delivery_assignee:
        log.warning(
            "POST_DELIVERY_ASSIGNEE is not set, DELIVERED and RTO DELIVERED tickets "
            "will keep their current assignee"
        )
    return asyncio.run(reconcile_shipments_async(effective))
