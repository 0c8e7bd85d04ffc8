#!/usr/bin/env python3
"""CLI tool for checking tournament source health and listing tournaments."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

# Load environment variables
load_dotenv(Path(__file__).parent.parent / ".env")

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from poker_circuit.aggregator import TournamentDataService, TournamentFilters
from poker_circuit.config import Settings
from poker_circuit.exceptions import InvalidFilterError

console = Console()


class SourceStatusCLI:
    """Prints source health and an aggregated tournament table."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.service = TournamentDataService.from_settings(settings)

    async def run(self, filters: TournamentFilters, show_tournaments: bool):
        console.print("[yellow]Checking sources...[/yellow]")
        try:
            await self.service.initialize()
            self.show_health()

            if show_tournaments:
                console.print("[yellow]Fetching tournaments...[/yellow]")
                result = await self.service.query(filters)
                self.show_tournaments(result)
                self.show_health()
        finally:
            await self.service.close()

    def show_health(self):
        table = Table(title="Source Health")
        table.add_column("Source", style="cyan")
        table.add_column("State", style="white")
        table.add_column("Last Checked", style="white")
        table.add_column("Rate Limit", style="yellow")
        table.add_column("Last Fetch", style="green")
        table.add_column("Error", style="red")

        for health in self.service.get_data_source_health():
            state_style = "green" if health.available else "red"
            table.add_row(
                health.source_name,
                f"[{state_style}]{health.state.value}[/{state_style}]",
                health.last_checked.strftime("%H:%M:%S") if health.last_checked else "-",
                str(health.rate_limit_remaining) if health.rate_limit_remaining is not None else "-",
                str(health.last_fetch_count) if health.last_fetch_count is not None else "-",
                health.error or "",
            )

        console.print(table)

    def show_tournaments(self, result):
        source_note = "cache" if result.from_cache else f"{sum(1 for s in result.sources if s.succeeded)} sources"
        table = Table(title=f"Tournaments ({result.total}, from {source_note})")
        table.add_column("Start", style="cyan")
        table.add_column("Tournament", style="white")
        table.add_column("Circuit", style="yellow")
        table.add_column("Venue", style="white")
        table.add_column("Buy-in", style="green", justify="right")

        for t in result.tournaments:
            location = f"{t.venue.address.city}, {t.venue.address.state}".strip(", ")
            table.add_row(
                t.start_date.strftime("%Y-%m-%d"),
                t.name,
                t.circuit.name,
                f"{t.venue.name} ({location})" if location else t.venue.name,
                f"${t.buy_in:,.0f}",
            )

        console.print(table)
        if result.stale:
            console.print("[yellow]All sources failed; showing stale cached results[/yellow]")


@click.command()
@click.option('--tournaments/--no-tournaments', default=True, help='Also fetch and list tournaments')
@click.option('--state', 'states', multiple=True, help='Filter by state code (repeatable)')
@click.option('--circuit', 'circuits', multiple=True,
              type=click.Choice(["major_tour", "regional_tour", "independent"]),
              help='Filter by circuit category (repeatable)')
@click.option('--min-buy-in', type=float, default=None, help='Minimum buy-in')
@click.option('--max-buy-in', type=float, default=None, help='Maximum buy-in')
@click.option('--search', default=None, help='Free-text search')
@click.option('--limit', type=int, default=25, show_default=True, help='Maximum tournaments to show')
@click.option('--verbose', is_flag=True, help='Show debug logging')
def main(tournaments, states, circuits, min_buy_in, max_buy_in, search, limit, verbose):
    """Poker Circuit - Source health and tournament listing."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        filters = TournamentFilters(
            min_buy_in=min_buy_in,
            max_buy_in=max_buy_in,
            circuits=frozenset(circuits),
            states=frozenset(states),
            search=search,
            max_results=limit,
        )
    except InvalidFilterError as e:
        raise click.BadParameter(str(e))

    cli = SourceStatusCLI(Settings())

    try:
        asyncio.run(cli.run(filters, tournaments))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")


if __name__ == "__main__":
    main()
