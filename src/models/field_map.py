import re
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from .collection import CollectionField
from .team import TeamRecord

# Whitespace-free, lower-cased display names mapped to TeamRecord attributes
DISPLAY_NAME_TO_ATTRIBUTE: Dict[str, str] = {
    "position": "position",
    "played": "played",
    "wins": "wins",
    "otwins": "ot_wins",
    "otlosses": "ot_losses",
    "losses": "losses",
    "goalsfor": "goals_for",
    "goalsagainst": "goals_against",
    "points": "points",
}


class FieldMap(BaseModel):
    """Destination field slug for each TeamRecord stat attribute.

    An attribute whose slug is None has no counterpart in the collection and
    is never written.
    """

    model_config = ConfigDict(frozen=True)

    position: Optional[str] = None
    played: Optional[str] = None
    wins: Optional[str] = None
    ot_wins: Optional[str] = None
    ot_losses: Optional[str] = None
    losses: Optional[str] = None
    goals_for: Optional[str] = None
    goals_against: Optional[str] = None
    points: Optional[str] = None

    @property
    def mapped(self) -> Dict[str, str]:
        return {attr: slug for attr, slug in self.model_dump().items() if slug}

    @property
    def missing(self) -> List[str]:
        return [attr for attr, slug in self.model_dump().items() if not slug]

    def to_field_data(self, team: TeamRecord) -> Dict[str, Any]:
        """Builds the stat portion of an item's fieldData payload."""
        return {slug: getattr(team, attr) for attr, slug in self.mapped.items()}


def normalize_display_name(display_name: str) -> str:
    return re.sub(r"\s+", "", display_name.lower())


def build_field_map(fields: Iterable[CollectionField]) -> FieldMap:
    """Matches collection schema fields to TeamRecord attributes by display name."""
    slugs: Dict[str, str] = {}
    for field in fields:
        logger.debug(f"Collection field '{field.label}' -> slug '{field.slug}'")
        attribute = DISPLAY_NAME_TO_ATTRIBUTE.get(normalize_display_name(field.label))
        if attribute:
            slugs[attribute] = field.slug

    field_map = FieldMap(**slugs)
    logger.info(f"Field mapping: {field_map.mapped}")
    if field_map.missing:
        logger.info(
            f"No collection field for {field_map.missing}; these values will not be written."
        )
    return field_map
