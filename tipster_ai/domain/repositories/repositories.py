"""
Domain Repository Interfaces Module

These are abstract interfaces that define how the domain layer reaches its
collaborators: the prediction store, the results provider and the text
generation service. Concrete implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from datetime import date

from tipster_ai.domain.entities.entities import Match
from tipster_ai.domain.entities.prediction import Prediction


class PredictionRepository(ABC):
    """Abstract store for the prediction ledger."""

    @abstractmethod
    async def find_by_key(self, key: str) -> Optional[Prediction]:
        """Get a prediction by its (home, away, date) key. Raises PersistenceException if the store cannot be read."""
        pass

    @abstractmethod
    async def upsert(self, prediction: Prediction) -> None:
        """Insert or update a prediction by key."""
        pass

    @abstractmethod
    async def find_pending(self) -> list[Prediction]:
        """Get all PENDING predictions, oldest match first."""
        pass

    @abstractmethod
    async def find_settled(self) -> list[Prediction]:
        """Get all settled (WON, LOST, VOID) predictions."""
        pass

    @abstractmethod
    async def find_history_for_teams(
        self,
        home_team: str,
        away_team: str,
        limit: int = 8,
    ) -> list[Prediction]:
        """Get recent WON/LOST predictions involving either team, newest first."""
        pass


class MatchResultsProvider(ABC):
    """Abstract source of fixtures and final scores."""

    @abstractmethod
    async def list_matches(
        self,
        league_code: str,
        date_from: date,
        date_to: date,
        status: Optional[str] = None,
    ) -> Optional[list[Match]]:
        """
        Get fixtures of a league in a date range.

        Returns None when the provider could not be reached.
        """
        pass


class TextGenerator(ABC):
    """Abstract text generation service."""

    @abstractmethod
    async def generate_text(self, prompt: str, model: str) -> Any:
        """Return the raw response envelope for a prompt."""
        pass
