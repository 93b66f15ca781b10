"""Domain intelligence maintenance commands."""

from __future__ import annotations

import argparse
import json
import logging

import pandas as pd

from src.cli.context import domain_service_session
from src.reporting.csv_writer import domain_stats_frame, write_report_csv
from src.services.domain_repository import SORT_COLUMNS

logger = logging.getLogger(__name__)


def add_list_domains_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "list-domains",
        help="List tracked source domains with their bias statistics",
    )
    parser.add_argument("--limit", type=int, default=None, help="Page size")
    parser.add_argument("--offset", type=int, default=0, help="Rows to skip")
    parser.add_argument(
        "--sort-by",
        choices=sorted(SORT_COLUMNS),
        default="last_used",
        help="Sort column, descending (default: last_used)",
    )
    parser.add_argument(
        "--format",
        choices=["table", "json", "csv"],
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--output",
        help="Write the listing to this CSV file instead of stdout",
    )
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.set_defaults(func=handle_list_domains_command)
    return parser


def add_recalculate_domains_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "recalculate-domains",
        help="Rebuild domain statistics from the stored sources",
    )
    parser.add_argument(
        "--domain",
        help="Only recalculate this domain (default: all domains)",
    )
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.set_defaults(func=handle_recalculate_domains_command)
    return parser


def add_suggest_bias_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "suggest-bias",
        help="Suggest a bias rating for a URL from its domain history",
    )
    parser.add_argument("url", help="Article URL")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.set_defaults(func=handle_suggest_bias_command)
    return parser


def _format_table(domains_df: pd.DataFrame, total: int) -> None:
    print("\n=== Tracked Domains ===")
    print(f"Showing {len(domains_df)} of {total} domains")
    print()
    for _, row in domains_df.iterrows():
        avg = row.get("avgBiasRating")
        avg_text = "n/a" if avg is None or pd.isna(avg) else f"{avg:+.2f}"
        print(f"Domain:   {row['normalizedDomain']}")
        print(f"Sources:  {row['totalSources']}  Avg bias: {avg_text}")
        print(f"Uses:     {row['usageFrequency']}  Last used: {row['lastUsed']}")
        print("-" * 60)


def handle_list_domains_command(args) -> int:
    try:
        with domain_service_session(getattr(args, "database_url", None)) as service:
            domains, total = service.list_domains(
                limit=args.limit, offset=args.offset, sort_by=args.sort_by
            )
    except Exception as exc:
        logger.error("Failed to list domains: %s", exc)
        return 1

    if not domains:
        print("No domains tracked.")
        return 0

    domains_df = domain_stats_frame(domains)

    if getattr(args, "output", None):
        write_report_csv(domains_df, args.output, logger=logger)
    elif args.format == "json":
        print(json.dumps(domains_df.to_dict("records"), indent=2, default=str))
    elif args.format == "csv":
        print(domains_df.to_csv(index=False))
    else:
        _format_table(domains_df, total)

    logger.info("Listed %s of %s domains", len(domains), total)
    return 0


def handle_recalculate_domains_command(args) -> int:
    try:
        with domain_service_session(getattr(args, "database_url", None)) as service:
            if args.domain:
                stats = service.recalculate(args.domain)
                if stats is None:
                    print(f"{args.domain}: no matching sources, record removed")
                else:
                    print(
                        f"{stats.normalized_domain}: {stats.total_sources} sources, "
                        f"avg bias {stats.avg_bias_rating}"
                    )
                return 0

            summary = service.recalculate_all()
    except Exception as exc:
        logger.error("Failed to recalculate domains: %s", exc)
        return 1

    if summary.failed:
        print("Recalculation failed; see log for details")
        return 1

    print(f"Recalculated domains: {summary.updated} updated, {summary.deleted} deleted")
    return 0


def handle_suggest_bias_command(args) -> int:
    try:
        with domain_service_session(getattr(args, "database_url", None)) as service:
            suggestion = service.suggest_bias_rating(args.url)
    except Exception as exc:
        logger.error("Failed to suggest bias rating: %s", exc)
        return 1

    if suggestion.suggested_bias is None:
        print(f"No history for {args.url}")
        return 0

    print(
        f"Suggested bias: {suggestion.suggested_bias:+.1f} "
        f"(confidence {suggestion.confidence:.2f})"
    )
    return 0
