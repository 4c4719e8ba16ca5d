from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field

# Order of the stat columns following the team name in a standings row
STAT_FIELDS: Tuple[str, ...] = (
    "played",
    "wins",
    "ot_wins",
    "ot_losses",
    "losses",
    "goals_for",
    "goals_against",
    "points",
)


class TeamRecord(BaseModel):
    """One row of a league standings table."""

    model_config = ConfigDict(frozen=True)  # Make instances immutable

    name: str = Field(..., min_length=1)
    position: int = Field(..., ge=1, le=20)
    played: int = Field(0, ge=0)
    wins: int = Field(0, ge=0)
    ot_wins: int = Field(0, ge=0)
    ot_losses: int = Field(0, ge=0)
    losses: int = Field(0, ge=0)
    goals_for: int = Field(0, ge=0)
    goals_against: int = Field(0, ge=0)
    points: int = Field(0, ge=0)

    @property
    def match_key(self) -> str:
        """Name as used for case-insensitive matching against known teams."""
        return self.name.strip().lower()
