"""
Domain Entities Module

Fixtures and results as seen by the tipster. These entities are built by
the data sources and are independent of any infrastructure.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class Match:
    """
    Represents a football fixture returned by a results provider.

    Attributes:
        id: Provider identifier for the fixture
        home_team: Home team name as the provider formats it
        away_team: Away team name as the provider formats it
        league_code: Competition code (e.g., "PL")
        match_date: Calendar date of the fixture
        home_goals: Full-time goals of the home team (None until finished)
        away_goals: Full-time goals of the away team (None until finished)
        status: Provider status (SCHEDULED, TIMED, FINISHED, ...)
    """
    id: str
    home_team: str
    away_team: str
    league_code: str
    match_date: date
    league_name: Optional[str] = None
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    status: str = "SCHEDULED"

    def __post_init__(self):
        if not self.home_team or not self.away_team:
            raise ValueError("Match requires both team names")

    @property
    def is_finished(self) -> bool:
        """Check if the match has a final score."""
        return self.home_goals is not None and self.away_goals is not None

    @property
    def score(self) -> Optional[str]:
        """Final score as "home-away", or None if not finished."""
        if not self.is_finished:
            return None
        return f"{self.home_goals}-{self.away_goals}"

    def describe(self) -> str:
        """One-line summary used in prompts."""
        if self.is_finished:
            return f"{self.home_team} {self.score} {self.away_team}"
        return f"{self.home_team} vs {self.away_team}"
