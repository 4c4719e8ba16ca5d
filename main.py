import sys
import asyncio

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.config.settings import AppSettings, load_settings
from src.logging.setup import setup_logging
from src.models.enums import SyncAction
from src.sync.standings_sync import StandingsNotFoundError, SyncSummary, run_sync

console = Console()

ACTION_STYLES = {
    SyncAction.CREATED: "green",
    SyncAction.UPDATED: "cyan",
    SyncAction.FAILED: "red",
    SyncAction.SKIPPED: "yellow",
}


def render_summary(summary: SyncSummary) -> None:
    """Prints the synced standings and the run totals."""
    table = Table(title=f"Standings (table {summary.table_index}, {summary.table_score} known teams)")
    for column in ("Pos", "Team", "P", "W", "OTW", "OTL", "L", "GF", "GA", "Pts", "Result"):
        table.add_column(column, justify="left" if column in ("Team", "Result") else "right")

    for result in summary.results:
        team = result.team
        style = ACTION_STYLES.get(result.action, "")
        table.add_row(
            str(team.position),
            team.name,
            str(team.played),
            str(team.wins),
            str(team.ot_wins),
            str(team.ot_losses),
            str(team.losses),
            str(team.goals_for),
            str(team.goals_against),
            str(team.points),
            f"[{style}]{result.action.value}[/{style}]",
        )
    console.print(table)

    if summary.dry_run:
        totals = f"Dry run: {len(summary.results)} teams parsed, nothing written."
    else:
        totals = (
            f"{summary.created} created, {summary.updated} updated, "
            f"{summary.failed} failed, {summary.published} published"
        )
    console.print(Panel(totals, title="Sync complete", expand=False))


async def main(settings: AppSettings) -> int:
    """Main entry point for the application."""
    logger.info("Starting standings sync")
    try:
        summary = await run_sync(settings)
    except StandingsNotFoundError as e:
        logger.error(f"{e}. Nothing was synced.")
        return 1

    render_summary(summary)
    return 0


if __name__ == "__main__":
    settings = load_settings()
    setup_logging(settings)
    try:
        sys.exit(asyncio.run(main(settings)))
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
