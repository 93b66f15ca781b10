"""Administrative CLI with modular command structure."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from typing import cast

from src import config
from src.utils.logging_config import bind_request_context

from .commands.domains import (  # noqa: F401
    add_list_domains_parser,
    add_recalculate_domains_parser,
    add_suggest_bias_parser,
    handle_list_domains_command,
    handle_recalculate_domains_command,
    handle_suggest_bias_command,
)
from .commands.periods import (  # noqa: F401
    add_classify_period_parser,
    handle_classify_period_command,
)

CommandHandler = Callable[[argparse.Namespace], int]

COMMAND_HANDLER_ATTRS: dict[str, str] = {
    "list-domains": "handle_list_domains_command",
    "recalculate-domains": "handle_recalculate_domains_command",
    "suggest-bias": "handle_suggest_bias_command",
    "classify-period": "handle_classify_period_command",
}


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="accountability",
        description="Accountability tracker - domain intelligence maintenance",
    )

    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        help="Logging level (e.g. INFO, DEBUG; default: LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=False,
    )

    add_list_domains_parser(subparsers)
    add_recalculate_domains_parser(subparsers)
    add_suggest_bias_parser(subparsers)
    add_classify_period_parser(subparsers)

    return parser


def _resolve_handler(
    args: argparse.Namespace,
    overrides: dict[str, CommandHandler] | None = None,
) -> CommandHandler | None:
    command = getattr(args, "command", None)
    if overrides and command and command in overrides:
        return overrides[command]

    func = getattr(args, "func", None)
    if callable(func):
        return cast(CommandHandler, func)

    if command is None:
        return None

    attr_name = COMMAND_HANDLER_ATTRS.get(command)
    if not attr_name:
        return None

    handler = globals().get(attr_name)
    if callable(handler):
        return cast(CommandHandler, handler)

    return None


def main(
    argv: list[str] | None = None,
    *,
    setup_logging_func: Callable[[str], None] | None = None,
    handler_overrides: dict[str, CommandHandler] | None = None,
) -> int:
    """Main CLI entry point."""

    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = getattr(args, "log_level", "INFO") or "INFO"
    if setup_logging_func is None:
        from .context import setup_logging as default_setup_logging

        setup_logging_func = default_setup_logging

    setup_logging_func(log_level)
    if args.command:
        bind_request_context(command=args.command)

    handler = _resolve_handler(args, overrides=handler_overrides)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
