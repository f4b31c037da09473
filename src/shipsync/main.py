#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from shipsync.app import reconcile_shipments
from shipsync.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile Delhivery shipment status into Jira tickets"
    )
    parser.add_argument(
        "--created-since-days",
        type=int,
        help="Only consider tickets created within this many days (defaults to config)",
    )
    parser.add_argument(
        "--issue-key",
        type=str,
        help="Reconcile a single ticket, e.g. OPS-1234",
    )
    parser.add_argument(
        "--awb",
        type=str,
        help="Only reconcile tickets whose tracking number matches",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    if parsed_args.created_since_days is not None and parsed_args.created_since_days < 0:
        log.error("CLI validation error: --created-since-days must be non-negative")
        sys.exit(2)

    try:
        reconcile_shipments(
            created_since_days=parsed_args.created_since_days,
            issue_key=parsed_args.issue_key,
            awb=parsed_args.awb,
        )
    except ConfigurationError:
        log.exception("Invalid configuration, no tickets processed")
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
