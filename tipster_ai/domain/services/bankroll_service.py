"""
Bankroll Service Module

Aggregates the prediction ledger into a net result measured in stake units.
"""

import logging
from typing import Iterable

from tipster_ai.config import BANKROLL_PAYOUT_RATIO
from tipster_ai.domain.entities.prediction import BankrollSummary, Prediction, PredictionStatus

logger = logging.getLogger(__name__)


class BankrollService:
    """
    Service for the profit report over settled picks.

    A WON pick returns stake * payout_ratio, a LOST pick costs its stake,
    a VOID pick is returned untouched and left out of the win rate.
    """

    def __init__(self, payout_ratio: float = BANKROLL_PAYOUT_RATIO):
        if payout_ratio <= 0:
            raise ValueError("Payout ratio must be positive")
        self.payout_ratio = payout_ratio

    def summarize(self, predictions: Iterable[Prediction]) -> BankrollSummary:
        summary = BankrollSummary()
        net = 0.0

        for p in predictions:
            if p.status is PredictionStatus.WON:
                net += p.stake * self.payout_ratio
                summary.won += 1
            elif p.status is PredictionStatus.LOST:
                net -= p.stake
                summary.lost += 1
            elif p.status is PredictionStatus.VOID:
                summary.voided += 1

        summary.net_units = round(net, 2)
        logger.debug(f"Bankroll: {summary.net_units:+.2f}u over {summary.settled} settled picks")
        return summary
