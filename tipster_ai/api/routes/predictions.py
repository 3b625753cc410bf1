"""
Predictions Router

API endpoints for generating and listing picks.
Generation errors are mapped to HTTP responses by the handlers in main.py.
"""

from fastapi import APIRouter, Depends, Query

from tipster_ai.application.dtos.dtos import (
    AnalyzeMatchRequest,
    ErrorResponseDTO,
    NewsScanDTO,
    PendingPredictionsDTO,
    PredictionDTO,
)
from tipster_ai.api.dependencies import get_prediction_repository, get_tipster_service


router = APIRouter(prefix="/predictions", tags=["Predictions"])


@router.post(
    "/analyze",
    response_model=PredictionDTO,
    responses={
        429: {"model": ErrorResponseDTO, "description": "Generation quota exhausted, try again later"},
        502: {"model": ErrorResponseDTO, "description": "Generation service failure"},
    },
    summary="Get the pick for a match",
    description="Returns the stored pick for the match, or generates and stores a new one.",
)
async def analyze_match(
    request: AnalyzeMatchRequest,
    tipster_service=Depends(get_tipster_service),
) -> PredictionDTO:
    """Generate (or fetch the stored) pick for a match."""
    prediction = await tipster_service.generate_pick(
        request.home_team,
        request.away_team,
        request.league_code,
        request.match_date,
    )
    return PredictionDTO.from_entity(prediction)


@router.get(
    "/pending",
    response_model=PendingPredictionsDTO,
    summary="List pending picks",
    description="Returns every pick that has not been settled yet, oldest match first.",
)
async def get_pending_predictions(
    repository=Depends(get_prediction_repository),
) -> PendingPredictionsDTO:
    """List pending picks."""
    pending = await repository.find_pending()
    return PendingPredictionsDTO(
        predictions=[PredictionDTO.from_entity(p) for p in pending],
        total=len(pending),
    )


@router.get(
    "/radar",
    response_model=NewsScanDTO,
    responses={
        429: {"model": ErrorResponseDTO, "description": "Generation quota exhausted, try again later"},
    },
    summary="Pre-match news scan",
    description="Short summary of absences or critical context for a match.",
)
async def scan_match_news(
    home_team: str = Query(..., min_length=1),
    away_team: str = Query(..., min_length=1),
    tipster_service=Depends(get_tipster_service),
) -> NewsScanDTO:
    """Quick news scan for a match."""
    summary = await tipster_service.scan_match_news(home_team, away_team)
    return NewsScanDTO(home_team=home_team, away_team=away_team, summary=summary.strip())
