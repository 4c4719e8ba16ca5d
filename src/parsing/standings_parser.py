"""Standings table discovery and extraction.

A page usually holds several similarly shaped tables (the standings, fixture
grids, older seasons, layout tables). Rows are recognised structurally, and the
standings table is then picked by cross-referencing the parsed team names with
the names already known to the CMS collection.
"""

import re
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict

from src.models.team import STAT_FIELDS, TeamRecord
from src.parsing.cells import is_stat_cell, leading_int, normalize_cell, to_int

TABLE_RE = re.compile(r"<table\b[\s\S]*?</table>", re.IGNORECASE)
ROW_RE = re.compile(r"<tr\b[\s\S]*?</tr>", re.IGNORECASE)
CELL_RE = re.compile(r"<td\b[^>]*>([\s\S]*?)</td>", re.IGNORECASE)
HEADER_CELL_RE = re.compile(r"<th[\s>]", re.IGNORECASE)

# Position may sit in any of the first cells (blank or rank-icon cells come first)
POSITION_SCAN_CELLS = 3
MIN_POSITION = 1
MAX_POSITION = 20


class TableSelection(BaseModel):
    """The candidate table chosen as the standings table."""

    model_config = ConfigDict(frozen=True)

    records: List[TeamRecord]
    score: int
    index: int  # 1-based, among all candidate tables


def extract_all_tables(html: str) -> List[str]:
    """Returns every <table>...</table> fragment in document order.

    Matching is non-greedy so one match never swallows several tables.
    """
    return TABLE_RE.findall(html or "")


def _find_position_index(cells: Sequence[str]) -> Optional[int]:
    for i, cell in enumerate(cells[:POSITION_SCAN_CELLS]):
        value = leading_int(cell)
        if value is not None and MIN_POSITION <= value <= MAX_POSITION:
            return i
    return None


def parse_row(cells: Sequence[str]) -> Optional[TeamRecord]:
    """Builds a TeamRecord from normalized cells, or None if the row is not a standings entry."""
    position_index = _find_position_index(cells)
    if position_index is None:
        return None

    name_index = position_index + 1
    data_start = position_index + 2
    if len(cells) < data_start + len(STAT_FIELDS):
        return None

    name = cells[name_index]
    if not name:
        return None

    stat_cells = cells[data_start : data_start + len(STAT_FIELDS)]
    if not all(is_stat_cell(cell) for cell in stat_cells):
        # Fixture grids share the layout but hold scores, dates or placeholders
        return None

    stats = {field: to_int(cell) for field, cell in zip(STAT_FIELDS, stat_cells)}
    return TeamRecord(name=name, position=leading_int(cells[position_index]), **stats)


def parse_table(table_html: str) -> List[TeamRecord]:
    """Parses the standings rows of one table fragment.

    Header rows and rows that do not look like standings entries are skipped;
    nothing in here raises on malformed markup.
    """
    teams: List[TeamRecord] = []

    for row in ROW_RE.findall(table_html or ""):
        if HEADER_CELL_RE.search(row):
            continue

        cells = [normalize_cell(raw) for raw in CELL_RE.findall(row)]
        if not cells:
            continue

        team = parse_row(cells)
        if team is None:
            logger.debug(f"Skipping non-standings row: {cells[:6]}")
            continue
        teams.append(team)

    return teams


def _normalize_names(names: Iterable[str]) -> set:
    return {name.strip().lower() for name in names if name and name.strip()}


def select_best_table(
    candidates: Sequence[str], reference_names: Iterable[str]
) -> Optional[TableSelection]:
    """Picks the candidate whose teams best match the known team names.

    The score of a candidate is the number of its records whose name is a
    known name (case-insensitive, trimmed). Candidates without records are
    ignored, and on equal scores the earlier table wins. Returns None when no
    candidate scores above zero.
    """
    known = _normalize_names(reference_names)
    best: Optional[TableSelection] = None

    for index, table_html in enumerate(candidates, start=1):
        records = parse_table(table_html)
        if not records:
            continue

        score = sum(1 for team in records if team.match_key in known)
        logger.debug(
            f"Table {index}: {len(records)} standings rows, {score} known teams"
        )
        if score > (best.score if best else 0):
            best = TableSelection(records=records, score=score, index=index)

    return best


def find_duplicate_names(records: Sequence[TeamRecord]) -> List[str]:
    """Names (as first written) that appear on more than one row."""
    counts = Counter(team.match_key for team in records)
    seen = set()
    duplicates = []
    for team in records:
        if counts[team.match_key] > 1 and team.match_key not in seen:
            seen.add(team.match_key)
            duplicates.append(team.name)
    return duplicates
