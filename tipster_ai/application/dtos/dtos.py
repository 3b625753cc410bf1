"""
Data Transfer Objects (DTOs) Module

DTOs are used to transfer data between layers and to/from the API.
They use Pydantic for validation and serialization.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from tipster_ai.domain.entities.prediction import (
    BankrollSummary,
    ConfidenceLevel,
    Prediction,
    PredictionStatus,
    SettlementSummary,
)


# ============================================================
# Request DTOs
# ============================================================

class AnalyzeMatchRequest(BaseModel):
    """Request for a pick on a single match."""
    home_team: str = Field(..., min_length=1, description="Home team name")
    away_team: str = Field(..., min_length=1, description="Away team name")
    league_code: str = Field(..., min_length=1, description="Competition code, e.g. PL")
    match_date: date = Field(..., description="Match calendar date")


# ============================================================
# Response DTOs
# ============================================================

class PredictionDTO(BaseModel):
    """Prediction data transfer object."""
    key: str
    home_team: str
    away_team: str
    match_date: date
    league_code: str
    pick: str
    analysis: str = ""
    stake: float = 0.0
    confidence: ConfidenceLevel
    predicted_score: Optional[str] = None
    advice: Optional[str] = None
    real_score: Optional[str] = None
    status: PredictionStatus
    created_at: Optional[datetime] = None
    settled_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, prediction: Prediction) -> "PredictionDTO":
        return cls(
            key=prediction.key,
            home_team=prediction.home_team,
            away_team=prediction.away_team,
            match_date=prediction.match_date,
            league_code=prediction.league_code,
            pick=prediction.pick,
            analysis=prediction.analysis,
            stake=prediction.stake,
            confidence=prediction.confidence,
            predicted_score=prediction.predicted_score,
            advice=prediction.advice,
            real_score=prediction.real_score,
            status=prediction.status,
            created_at=prediction.created_at,
            settled_at=prediction.settled_at,
        )


class PendingPredictionsDTO(BaseModel):
    """Pending predictions list."""
    predictions: list[PredictionDTO]
    total: int


class UpcomingMatchDTO(BaseModel):
    """Scheduled fixture with analysis flag."""
    key: str
    home_team: str
    away_team: str
    match_date: date
    league_code: str
    analyzed: bool


class UpcomingMatchesDTO(BaseModel):
    """Scheduled fixtures of a competition."""
    league_code: str
    matches: list[UpcomingMatchDTO]


class NewsScanDTO(BaseModel):
    """Short news scan before a match."""
    home_team: str
    away_team: str
    summary: str


class SettlementOutcomeDTO(BaseModel):
    """Result of settling one prediction."""
    key: str
    status: Optional[PredictionStatus] = None
    real_score: Optional[str] = None
    reason: str = ""


class SettlementSummaryDTO(BaseModel):
    """Settlement run counters."""
    won: int
    lost: int
    voided: int
    skipped: int
    total: int
    outcomes: list[SettlementOutcomeDTO] = []

    @classmethod
    def from_entity(cls, summary: SettlementSummary) -> "SettlementSummaryDTO":
        return cls(
            won=summary.won,
            lost=summary.lost,
            voided=summary.voided,
            skipped=summary.skipped,
            total=summary.total,
            outcomes=[
                SettlementOutcomeDTO(key=o.key, status=o.status, real_score=o.real_score, reason=o.reason)
                for o in summary.outcomes
            ],
        )


class BankrollDTO(BaseModel):
    """Profit report in stake units."""
    net_units: float
    won: int
    lost: int
    voided: int
    settled: int
    win_rate: Optional[float] = None

    @classmethod
    def from_entity(cls, summary: BankrollSummary) -> "BankrollDTO":
        return cls(
            net_units=summary.net_units,
            won=summary.won,
            lost=summary.lost,
            voided=summary.voided,
            settled=summary.settled,
            win_rate=summary.win_rate,
        )


class HealthResponseDTO(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: datetime


class ErrorResponseDTO(BaseModel):
    """Error response."""
    error: str
    message: str
    details: Optional[dict] = None
