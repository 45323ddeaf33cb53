# src/cli/runner.py

"""Headless CLI commands: one-off search, health check, and server."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.errors import InvalidInput
from src.models.product import Product
from src.services.search_orchestrator import (
    SearchOrchestrator,
    SearchResult,
)

logger = logging.getLogger("canmade_search.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _print_table(products: list[Product]) -> None:
    """Render a Rich table of products to stdout, in result order."""
    table = Table(
        title="Search Results",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Maker", style="magenta")
    table.add_column("Canadian", justify="center")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, p in enumerate(products, 1):
        canadian = (
            f"{p.canadian_percentage:.0f}%"
            if p.canadian_percentage is not None
            else "-"
        )
        table.add_row(
            str(idx),
            p.name[:50],
            f"CAD {p.price:,.2f}",
            p.manufacturer,
            canadian,
            p.url,
        )

    Console().print(table)


def _print_summary(result: SearchResult) -> None:
    """Summarise the run on stderr."""
    parts: list[str] = []
    if result.invalid_count:
        parts.append(f"{result.invalid_count} invalid")
    if result.deduplicated_count:
        parts.append(f"{result.deduplicated_count} deduped")
    if result.timed_out:
        parts.append("provider timed out")
    parts.append(f"{result.attempts} attempt(s)")
    _err.print(
        f"[green]✓ {len(result.products)} products"
        f" in {result.elapsed_ms / 1000:.1f}s"
        f" ({', '.join(parts)})[/green]"
    )


async def cli_search(
    query: str,
    output_format: str,
    deadline_ms: int | None = None,
) -> int:
    """Run a headless search and return an exit code (0=ok, 1=fail)."""
    orchestrator = SearchOrchestrator()
    _err.print(f"[bold]Searching:[/bold] {query}")

    try:
        result = await orchestrator.search_with_stats(query, deadline_ms)
    except InvalidInput as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1

    for error_msg in result.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")

    if not result.products:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    _print_summary(result)

    if output_format == "table":
        _print_table(result.products)
    else:
        json.dump(
            [p.to_dict() for p in result.products],
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return 0


async def run_health_check() -> int:
    """Run the dependency health check and print a table."""
    from src.services.health_checker import HealthChecker
    from src.services.rate_limiter import RateLimiter, create_redis

    _err.print("[bold]Running dependency health check...[/bold]")
    redis = create_redis()
    try:
        results = await HealthChecker(RateLimiter(redis)).check_all()
    finally:
        await redis.aclose()

    table = Table(
        title="Dependency Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Dependency", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "-"
        )
        table.add_row(
            r.source_id, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from src.api.app import create_app

    uvicorn.run(
        create_app(),
        host=host or Settings.HOST,
        port=port or Settings.PORT,
        log_config=None,
    )
