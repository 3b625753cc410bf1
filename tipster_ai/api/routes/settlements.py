"""
Settlements Router

Runs the settlement of pending picks and reports the bankroll.
"""

from fastapi import APIRouter, Depends

from tipster_ai.application.dtos.dtos import BankrollDTO, SettlementSummaryDTO
from tipster_ai.api.dependencies import (
    get_bankroll_service,
    get_prediction_repository,
    get_settlement_reconciler,
)


router = APIRouter(prefix="/settlements", tags=["Settlements"])


@router.post(
    "/run",
    response_model=SettlementSummaryDTO,
    summary="Settle pending picks",
    description="Checks every pending pick against finished results. Failures on one pick are reported as skipped.",
)
async def run_settlement(
    reconciler=Depends(get_settlement_reconciler),
) -> SettlementSummaryDTO:
    """Settle all pending picks."""
    summary = await reconciler.reconcile_pending()
    return SettlementSummaryDTO.from_entity(summary)


@router.get(
    "/bankroll",
    response_model=BankrollDTO,
    summary="Bankroll report",
    description="Net result in stake units over settled picks. VOID picks count neither way.",
)
async def get_bankroll(
    repository=Depends(get_prediction_repository),
    bankroll_service=Depends(get_bankroll_service),
) -> BankrollDTO:
    """Net units won or lost."""
    settled = await repository.find_settled()
    return BankrollDTO.from_entity(bankroll_service.summarize(settled))
