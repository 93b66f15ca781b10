"""Classify a date into its administration period."""

from __future__ import annotations

import argparse
import logging
from datetime import date

from src.services.admin_period import classify_period, get_period_label

logger = logging.getLogger(__name__)


def add_classify_period_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "classify-period",
        help="Show which administration period a date falls into",
    )
    parser.add_argument("date", help="Date in YYYY-MM-DD format")
    parser.set_defaults(func=handle_classify_period_command)
    return parser


def handle_classify_period_command(args) -> int:
    try:
        value = date.fromisoformat(args.date)
    except ValueError:
        logger.error("Invalid date %r, expected YYYY-MM-DD", args.date)
        return 1

    period = classify_period(value)
    print(f"{value.isoformat()}: {period.value} ({get_period_label(period)})")
    return 0
