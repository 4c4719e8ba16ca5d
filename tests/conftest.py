"""
Pytest configuration and shared fixtures.
"""
from typing import Iterable, List, Sequence

import pytest
from tenacity import wait_none

from src.clients.base_client import BaseClient
from src.config.settings import AppSettings

HEADER = ["", "Pos", "Team", "P", "W", "OTW", "OTL", "L", "GF", "GA", "Pts"]


def make_row(cells: Iterable[str], cell_tag: str = "td") -> str:
    return "<tr>" + "".join(f"<{cell_tag}>{c}</{cell_tag}>" for c in cells) + "</tr>"


def make_table(rows: Sequence[Sequence[str]], header: bool = True) -> str:
    parts = ['<table class="wp-block-table">']
    if header:
        parts.append("<thead>" + make_row(HEADER, cell_tag="th") + "</thead>")
    parts.append("<tbody>")
    parts.extend(make_row(r) for r in rows)
    parts.append("</tbody></table>")
    return "\n".join(parts)


def standings_rows(names: Sequence[str]) -> List[List[str]]:
    """Rows with a blank leading cell, position, name and eight stats."""
    rows = []
    for i, name in enumerate(names, start=1):
        wins = len(names) - i
        rows.append(["", str(i), name, "10", str(wins), "1", "0", str(9 - wins), "40", "20", str(wins * 2 + 1)])
    return rows


def make_page(*tables: str) -> str:
    body = "\n<p>Latest results</p>\n".join(tables)
    return f"<html><body><h2>WILKINSON TABLE</h2>\n{body}\n</body></html>"


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        webflow_api_token="wf-test-token-abcdef123456",
        webflow_collection_id="col123",
        standings_url="https://example.com/standings/",
        write_delay_seconds=0,
    )


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Removes the backoff between HTTP retries."""
    monkeypatch.setattr(BaseClient._make_request.retry, "wait", wait_none())
