import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel

from src.clients.base_client import AuthenticationError, ClientError, RateLimitError
from src.config.settings import AppSettings
from src.models.enums import SyncAction
from src.models.field_map import FieldMap, build_field_map
from src.models.team import TeamRecord
from src.scrapers.standings_scraper import StandingsScraper
from src.storage.webflow_client import WebflowClient


class StandingsNotFoundError(Exception):
    """No table on the page matched any known team."""

    pass


class SyncResult(BaseModel):
    team: TeamRecord
    action: SyncAction
    item_id: Optional[str] = None
    error: Optional[str] = None


class SyncSummary(BaseModel):
    table_index: int
    table_score: int
    results: List[SyncResult] = []
    published: int = 0
    dry_run: bool = False

    def count(self, action: SyncAction) -> int:
        return sum(1 for r in self.results if r.action == action)

    @property
    def created(self) -> int:
        return self.count(SyncAction.CREATED)

    @property
    def updated(self) -> int:
        return self.count(SyncAction.UPDATED)

    @property
    def failed(self) -> int:
        return self.count(SyncAction.FAILED)


async def _sync_team(
    store: WebflowClient,
    team: TeamRecord,
    field_map: FieldMap,
    existing_id: Optional[str],
) -> SyncResult:
    try:
        if existing_id:
            await store.update_item(existing_id, team, field_map)
            logger.info(f"Updated: {team.name}")
            return SyncResult(team=team, action=SyncAction.UPDATED, item_id=existing_id)

        item = await store.create_item(team, field_map)
        logger.info(f"Created: {team.name}")
        return SyncResult(team=team, action=SyncAction.CREATED, item_id=item.id)
    except (AuthenticationError, RateLimitError):
        # Still rejected after retries; further writes would fail the same way
        raise
    except ClientError as e:
        verb = "update" if existing_id else "create"
        logger.warning(f"Failed to {verb} {team.name}: {e}")
        return SyncResult(
            team=team, action=SyncAction.FAILED, item_id=existing_id, error=str(e)
        )


async def run_sync(
    settings: AppSettings,
    scraper: Optional[StandingsScraper] = None,
    store: Optional[WebflowClient] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> SyncSummary:
    """Scrapes the standings page and mirrors every team into the CMS collection.

    Args:
        settings: Loaded application settings.
        scraper: Page scraper; built from settings (and closed here) when omitted.
        store: CMS client; built from settings (and closed here) when omitted.
        sleep: Awaitable used for the pause between item writes.

    Raises:
        StandingsNotFoundError: if no table on the page matches a known team.
    """
    owns_scraper = scraper is None
    owns_store = store is None
    scraper = scraper or StandingsScraper(
        str(settings.standings_url), timeout=settings.request_timeout_seconds
    )
    store = store or WebflowClient.from_settings(settings)

    try:
        logger.info("Fetching collection schema...")
        field_map = build_field_map(await store.get_collection_fields())

        logger.info("Fetching existing collection items...")
        items = await store.list_items()
        existing: Dict[str, str] = {}
        for item in items:
            if item.name:
                existing[item.name.strip().lower()] = item.id
        logger.info(f"Found {len(items)} existing items")

        reference_names = [item.name for item in items if item.name]
        reference_names.extend(settings.reference_team_names)

        logger.info(f"Fetching standings from {settings.standings_url}...")
        selection = await scraper.fetch_standings(reference_names)
        if selection is None:
            raise StandingsNotFoundError(
                "No standings table on the page matched a known team name"
            )

        summary = SyncSummary(
            table_index=selection.index,
            table_score=selection.score,
            dry_run=settings.dry_run,
        )

        if settings.dry_run:
            logger.warning("Dry run: skipping all collection writes")
            summary.results = [
                SyncResult(
                    team=team,
                    action=SyncAction.SKIPPED,
                    item_id=existing.get(team.match_key),
                )
                for team in selection.records
            ]
            return summary

        logger.info(f"Syncing {len(selection.records)} teams...")
        for i, team in enumerate(selection.records):
            if i:
                await sleep(settings.write_delay_seconds)
            result = await _sync_team(
                store, team, field_map, existing.get(team.match_key)
            )
            summary.results.append(result)
            if result.action == SyncAction.CREATED and result.item_id:
                # A repeated name later in the table updates this new item
                existing[team.match_key] = result.item_id

        logger.info(
            f"Summary: {summary.created} created, {summary.updated} updated, {summary.failed} failed"
        )

        logger.info("Publishing changes...")
        summary.published = await store.publish_all()
        logger.success(f"Published {summary.published} items")
        return summary
    finally:
        if owns_scraper:
            await scraper.close()
        if owns_store:
            await store.close()
