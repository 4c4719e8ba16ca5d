# src/utils/misc_utils.py
import re
from typing import Iterator, List, Sequence, TypeVar

T = TypeVar("T")


def slugify(name: str) -> str:
    """Generates a URL-safe item slug from a team name ("St. Albans" -> "st-albans")."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def chunked(values: Sequence[T], size: int) -> Iterator[List[T]]:
    for start in range(0, len(values), size):
        yield list(values[start : start + size])
