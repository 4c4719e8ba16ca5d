from typing import Iterable, Optional

import httpx
from loguru import logger

from src.clients.base_client import BaseClient
from src.parsing.standings_parser import (
    TableSelection,
    extract_all_tables,
    find_duplicate_names,
    select_best_table,
)


class StandingsScraper(BaseClient):
    """Fetches the standings page and picks out the standings table."""

    service_name = "standings page"

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self.url = url

    async def fetch_html(self) -> str:
        response = await self._make_request("GET", self.url)
        html = response.text
        logger.info(f"Fetched {len(html)} characters from {self.url}")
        return html

    async def fetch_standings(
        self, reference_names: Iterable[str]
    ) -> Optional[TableSelection]:
        """Downloads the page and returns the table matching the most known teams."""
        html = await self.fetch_html()
        return extract_standings(html, reference_names)


def extract_standings(
    html: str, reference_names: Iterable[str]
) -> Optional[TableSelection]:
    """Runs table discovery over a whole document."""
    tables = extract_all_tables(html)
    logger.info(f"Found {len(tables)} tables on the page")
    if not tables:
        return None

    selection = select_best_table(tables, reference_names)
    if selection is None:
        logger.warning("No table contained any known team names")
        return None

    logger.info(
        f"Selected table {selection.index} of {len(tables)}: "
        f"{len(selection.records)} teams, {selection.score} known"
    )
    duplicates = find_duplicate_names(selection.records)
    if duplicates:
        logger.warning(
            f"Team names repeated in the standings table: {duplicates}. "
            "Each row is synced in order, so the last one wins."
        )
    return selection
