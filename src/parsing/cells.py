import re
from typing import Optional

TAG_RE = re.compile(r"<[^>]*>")
STAT_RE = re.compile(r"[0-9]+")
LEADING_INT_RE = re.compile(r"[+-]?[0-9]+")


def normalize_cell(raw: str) -> str:
    """Strips markup from a table cell and decodes &nbsp; and &amp; only."""
    text = TAG_RE.sub("", raw or "")
    text = text.replace("&nbsp;", " ").replace("&amp;", "&")
    return text.strip()


def is_stat_cell(value: str) -> bool:
    """True for plain counts ("0", "17"); false for scores, dates and placeholders."""
    return STAT_RE.fullmatch(value) is not None


def leading_int(value: str) -> Optional[int]:
    """Parses the integer prefix of a value ("3", "3.", "3rd"), or None."""
    match = LEADING_INT_RE.match(value.strip())
    return int(match.group()) if match else None


def to_int(value: str, default: int = 0) -> int:
    """Parses the integer prefix of a value, falling back to default."""
    parsed = leading_int(value)
    return default if parsed is None else parsed
