# main.py

"""Entry point for canmade_search (HTTP server or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging

logger = logging.getLogger("canmade_search.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="canmade_search",
        description="Search engine for Canadian-made products.",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Search query. Omit to start the HTTP server.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "-d",
        "--deadline",
        type=int,
        default=None,
        dest="deadline_ms",
        help="Overall search deadline in milliseconds.",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Bind address for the HTTP server.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP server.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check connectivity to the rate-limit store and provider.",
    )
    return parser


def _run_server(args: argparse.Namespace) -> None:
    """Start the HTTP API."""
    from src.cli.runner import run_server

    try:
        run_server(args.host, args.port)
    except Exception:
        logger.critical("Fatal error in HTTP server", exc_info=True)
        raise
    finally:
        logger.info("canmade_search server shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless search and exit."""
    from src.cli.runner import cli_search

    exit_code = asyncio.run(
        cli_search(
            query=args.query,
            output_format=args.output_format,
            deadline_ms=args.deadline_ms,
        )
    )
    sys.exit(exit_code)


def _run_health_check() -> None:
    """Run dependency health check."""
    from src.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to the server (no query) or a headless search."""
    log_file = setup_logging()
    logger.info("canmade_search starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.health:
        _run_health_check()
    elif args.query is None:
        _run_server(args)
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
