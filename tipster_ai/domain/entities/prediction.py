"""
Prediction Entity Module

Contains the prediction ledger entry and the value objects produced while
generating and settling picks.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional
from enum import Enum

from tipster_ai.utils.time_utils import get_utc_now


class PredictionStatus(str, Enum):
    """Lifecycle status of a prediction. Everything but PENDING is terminal."""
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"

    @property
    def is_terminal(self) -> bool:
        return self is not PredictionStatus.PENDING


class ConfidenceLevel(str, Enum):
    """Confidence tier attached to a pick."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "ConfidenceLevel":
        """
        Map the labels a model answers with to a tier.

        Accepts traffic-light emojis, Spanish and English words.
        Anything unrecognized is MEDIUM.
        """
        if not label:
            return cls.MEDIUM
        text = str(label).strip().upper()
        if "🟢" in text or text in ("ALTA", "HIGH"):
            return cls.HIGH
        if "🔴" in text or text in ("BAJA", "LOW"):
            return cls.LOW
        return cls.MEDIUM

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


def build_prediction_key(home_team: str, away_team: str, match_date: date) -> str:
    """Deterministic identity of a prediction: one per (home, away, date)."""
    return f"{home_team}-{away_team}-{match_date.isoformat()}"


@dataclass
class PickFields:
    """Structured fields extracted from a model analysis."""
    pick: str
    confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    stake: float = 0.0
    analysis: str = ""
    predicted_score: str = "?"
    advice: str = ""


@dataclass
class Prediction:
    """
    A pick recorded for a match.

    Created PENDING; settled exactly once to WON, LOST or VOID by the
    settlement workflow. Never deleted.
    """
    home_team: str
    away_team: str
    match_date: date
    league_code: str
    pick: str
    analysis: str = ""
    stake: float = 0.0
    confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    predicted_score: Optional[str] = None
    advice: Optional[str] = None
    real_score: Optional[str] = None
    status: PredictionStatus = PredictionStatus.PENDING
    created_at: datetime = field(default_factory=get_utc_now)
    settled_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.home_team or not self.away_team:
            raise ValueError("Prediction requires both team names")
        if self.stake < 0:
            raise ValueError("Stake cannot be negative")

    @property
    def key(self) -> str:
        return build_prediction_key(self.home_team, self.away_team, self.match_date)

    @property
    def is_pending(self) -> bool:
        return self.status is PredictionStatus.PENDING

    def settled(self, status: PredictionStatus, real_score: str) -> "Prediction":
        """
        Return a settled copy of this prediction.

        Raises:
            ValueError: if already settled or the target status is PENDING
        """
        if not self.is_pending:
            raise ValueError(f"Prediction {self.key} already settled as {self.status.value}")
        if not status.is_terminal:
            raise ValueError("A prediction can only be settled to WON, LOST or VOID")
        return replace(
            self,
            status=status,
            real_score=real_score,
            settled_at=get_utc_now(),
        )


@dataclass
class SettlementOutcome:
    """What happened to one prediction during a settlement run."""
    key: str
    status: Optional[PredictionStatus] = None  # None when skipped
    real_score: Optional[str] = None
    reason: str = ""

    @property
    def skipped(self) -> bool:
        return self.status is None


@dataclass
class SettlementSummary:
    """Counters for a settlement run. They always add up to the input size."""
    won: int = 0
    lost: int = 0
    voided: int = 0
    skipped: int = 0
    outcomes: list[SettlementOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.won + self.lost + self.voided + self.skipped

    def record(self, outcome: SettlementOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status is PredictionStatus.WON:
            self.won += 1
        elif outcome.status is PredictionStatus.LOST:
            self.lost += 1
        elif outcome.status is PredictionStatus.VOID:
            self.voided += 1
        else:
            self.skipped += 1


@dataclass
class BankrollSummary:
    """Aggregate profit report over settled predictions, in stake units."""
    net_units: float = 0.0
    won: int = 0
    lost: int = 0
    voided: int = 0

    @property
    def settled(self) -> int:
        return self.won + self.lost + self.voided

    @property
    def win_rate(self) -> Optional[float]:
        """Share of WON among WON+LOST. VOID picks are left out."""
        decided = self.won + self.lost
        if decided == 0:
            return None
        return self.won / decided
