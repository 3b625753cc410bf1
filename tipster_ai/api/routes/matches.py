"""
Matches Router

Upcoming fixtures per competition, flagged when a pick already exists.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from tipster_ai.application.dtos.dtos import ErrorResponseDTO, UpcomingMatchDTO, UpcomingMatchesDTO
from tipster_ai.api.dependencies import get_tipster_service
from tipster_ai.config import UPCOMING_DAYS
from tipster_ai.infrastructure.data_sources.football_data_org import (
    SUPPORTED_COMPETITIONS,
    resolve_competition_code,
)


router = APIRouter(prefix="/matches", tags=["Matches"])


@router.get(
    "/competitions",
    summary="Supported competitions",
)
async def get_competitions() -> dict:
    """Competition codes offered to users."""
    return {"competitions": SUPPORTED_COMPETITIONS}


@router.get(
    "/{league_code}/upcoming",
    response_model=UpcomingMatchesDTO,
    responses={
        404: {"model": ErrorResponseDTO, "description": "Competition not supported"},
        503: {"model": ErrorResponseDTO, "description": "Fixtures provider unavailable"},
    },
    summary="Upcoming matches of a competition",
)
async def get_upcoming_matches(
    league_code: str = Path(..., description="Competition code, e.g. PL"),
    days: int = Query(default=UPCOMING_DAYS, ge=1, le=10, description="Lookahead window in days"),
    tipster_service=Depends(get_tipster_service),
) -> UpcomingMatchesDTO:
    """Scheduled matches for the next few days."""
    code = resolve_competition_code(league_code)
    if code not in SUPPORTED_COMPETITIONS:
        raise HTTPException(
            status_code=404,
            detail=f"Competition not supported: {league_code}. Available: {list(SUPPORTED_COMPETITIONS.keys())}",
        )

    upcoming = await tipster_service.list_upcoming(code, days=days)
    if upcoming is None:
        raise HTTPException(status_code=503, detail="Could not fetch fixtures. Try again in a minute.")

    return UpcomingMatchesDTO(
        league_code=code,
        matches=[
            UpcomingMatchDTO(
                key=u.key,
                home_team=u.match.home_team,
                away_team=u.match.away_team,
                match_date=u.match.match_date,
                league_code=code,
                analyzed=u.analyzed,
            )
            for u in upcoming
        ],
    )
