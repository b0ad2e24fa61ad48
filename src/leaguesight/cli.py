"""
LeagueSight CLI - Command Line Interface for championship statistics

Provides commands for:
- Aggregating a championship (through the cache)
- Running the periodic per-player form update
- Reading a player's cached form
- Generating and showing configuration
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from leaguesight import __version__
from leaguesight.core.config import (
    config_to_dict,
    generate_default_config,
    load_config,
    set_config,
    setup_logging,
)
from leaguesight.core.context import build_client, build_context, build_store
from leaguesight.integrations.faceit import FaceitApiError, MissingApiKeyError
from leaguesight.pipeline.orchestrator import LeagueStatsService
from leaguesight.pipeline.player_stats import (
    PENDING_STATUS,
    PlayerStatsUpdater,
    get_cached_player_stats,
    load_player_list,
)

app = typer.Typer(
    name="leaguesight",
    help="Championship statistics from FACEIT match data",
    add_completion=False,
)
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

_state: dict[str, Any] = {"config_file": None}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]LeagueSight[/bold blue] v{__version__}")
        raise typer.Exit()


def rating_style(rating: float) -> str:
    """Rich style for a rating value."""
    if rating >= 1.30:
        return "bold green"
    if rating >= 1.10:
        return "green"
    if rating >= 0.95:
        return "yellow"
    return "red"


def _load_config():
    config = load_config(_state["config_file"])
    set_config(config)
    setup_logging(config.logging)
    return config


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (.yaml, .toml or .json)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """LeagueSight - Championship statistics from FACEIT match data"""
    _state["config_file"] = config_file
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def aggregate(
    competition_id: Optional[str] = typer.Option(
        None,
        "--competition-id",
        "-i",
        help="Championship id (defaults to the configured one)"
    ),
    skip_cache: bool = typer.Option(
        False,
        "--skip-cache",
        help="Recompute even if a cached result exists"
    ),
    top: int = typer.Option(
        20,
        "--top",
        "-n",
        help="Number of players to show"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the full payload as JSON to this file"
    ),
) -> None:
    """
    Aggregate a championship and show team standings and the player leaderboard.
    """
    config = _load_config()

    async def run() -> tuple[dict, Any]:
        context = build_context(config)
        try:
            return await LeagueStatsService(context).get_league_stats(
                competition_id, skip_cache=skip_cache
            )
        finally:
            await context.aclose()

    try:
        with console.status("[bold blue]Collecting matches..."):
            payload, status = asyncio.run(run())
    except MissingApiKeyError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)
    except FaceitApiError as e:
        console.print(f"[red]FACEIT API error:[/red] {e}")
        raise typer.Exit(1)

    console.print(
        f"\n[bold blue]LeagueSight[/bold blue] {payload['competitionId']} "
        f"(cache: {status.value}, matches: {payload.get('matchesConsidered', 0)})\n"
    )
    _print_teams(payload["teams"])
    _print_players(payload["players"][:top])

    if output:
        output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        console.print(f"\n[green]Payload written to:[/green] {output}")


@app.command("update-players")
def update_players(
    players_file: Optional[Path] = typer.Argument(
        None,
        help="JSON array of nicknames (defaults to the configured file)",
        dir_okay=False,
    ),
) -> None:
    """
    Recompute recent form for every listed player that has new matches.
    """
    config = _load_config()
    path = players_file or Path(config.players.players_file)

    try:
        nicknames = load_player_list(path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not read player list:[/red] {e}")
        raise typer.Exit(1)

    async def run():
        client = build_client(config, request_delay_ms=config.players.request_delay_ms)
        try:
            updater = PlayerStatsUpdater(client, build_store(config), config.cache, config.players)
            return await updater.run(nicknames)
        finally:
            await client.aclose()

    try:
        summary = asyncio.run(run())
    except MissingApiKeyError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[green]Updated:[/green] {summary.success}  "
        f"[red]Failed:[/red] {summary.failed}  "
        f"[yellow]Skipped:[/yellow] {summary.skipped}"
    )


@app.command("player-stats")
def player_stats(
    player_id: str = typer.Argument(..., help="FACEIT player id"),
) -> None:
    """
    Show a player's cached form. Never contacts FACEIT.
    """
    config = _load_config()
    result = get_cached_player_stats(
        build_store(config), player_id, namespace=config.cache.player_namespace
    )

    if result["status"] == PENDING_STATUS:
        console.print(f"[yellow]No stats computed yet for {player_id}[/yellow]")
        return

    table = Table(title=f"Form of {player_id}", show_header=False)
    table.add_column("Stat", style="cyan")
    table.add_column("Value", style="green")
    for key in ("calculatedRating", "kd", "adr", "kast", "hsPercent", "winRate",
                "impact", "matchesConsidered", "lastUpdated"):
        table.add_row(key, str(result.get(key, "-")))
    console.print(table)


@app.command()
def config(
    init: Optional[Path] = typer.Option(
        None,
        "--init",
        help="Write a default configuration file to this path"
    ),
    show: bool = typer.Option(
        False,
        "--show",
        help="Print the effective configuration (API key hidden)"
    ),
) -> None:
    """
    Generate or show configuration.
    """
    if init:
        if init.exists():
            console.print(f"[red]Refusing to overwrite existing file:[/red] {init}")
            raise typer.Exit(1)
        generate_default_config(init)
        console.print(f"[green]Default config written to:[/green] {init}")
    if show or not init:
        console.print_json(json.dumps(config_to_dict(_load_config())))


def _print_teams(teams: list[dict]) -> None:
    if not teams:
        console.print("[yellow]No teams found[/yellow]")
        return

    table = Table(title="Team Standings")
    table.add_column("#", justify="right")
    table.add_column("Team", style="cyan")
    table.add_column("M", justify="right")
    table.add_column("W", justify="right")
    table.add_column("L", justify="right")
    table.add_column("Win%", justify="right")
    table.add_column("Avg Rating", justify="right")

    for i, team in enumerate(teams, start=1):
        table.add_row(
            str(i),
            team["name"],
            str(team["matchesPlayed"]),
            str(team["wins"]),
            str(team["losses"]),
            f"{team['winRate']:.1f}",
            f"[{rating_style(team['avgRating'])}]{team['avgRating']:.2f}[/]",
        )

    console.print(table)
    console.print()


def _print_players(players: list[dict]) -> None:
    if not players:
        console.print("[yellow]No players found[/yellow]")
        return

    table = Table(title="Player Leaderboard")
    table.add_column("#", justify="right")
    table.add_column("Player", style="cyan")
    table.add_column("M", justify="right")
    table.add_column("Rating", justify="right")
    table.add_column("K/D", justify="right")
    table.add_column("ADR", justify="right")
    table.add_column("KAST", justify="right")
    table.add_column("HS%", justify="right")
    table.add_column("Win%", justify="right")

    for i, player in enumerate(players, start=1):
        table.add_row(
            str(i),
            player["nickname"] or player["playerId"],
            str(player["matchesPlayed"]),
            f"[{rating_style(player['rating'])}]{player['rating']:.2f}[/]",
            f"{player['kd']:.2f}",
            f"{player['adr']:.1f}",
            f"{player['kast']:.1f}",
            f"{player['hsp']:.1f}",
            f"{player['winRate']:.1f}",
        )

    console.print(table)
    console.print()


if __name__ == "__main__":
    app()
