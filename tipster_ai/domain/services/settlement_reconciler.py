"""
Settlement Reconciler

Closes the loop between picks made and real outcomes: every PENDING
prediction whose match has finished is settled as WON, LOST or VOID.

Predictions are processed strictly one after another. They share the
generation service interval gate, and the results API has its own quota.
A failure on one prediction is logged and counted as skipped; it never
aborts the run.
"""

import asyncio
import logging
from typing import Optional, Sequence

from tipster_ai.domain.entities.entities import Match
from tipster_ai.domain.entities.prediction import (
    Prediction,
    PredictionStatus,
    SettlementOutcome,
    SettlementSummary,
)
from tipster_ai.domain.exceptions import LookupMissException
from tipster_ai.domain.repositories.repositories import MatchResultsProvider, PredictionRepository
from tipster_ai.domain.services.rate_limited_caller import RateLimitedCaller
from tipster_ai.domain.services.response_parsing import is_pass_pick
from tipster_ai.domain.services.team_matching import names_likely_match

logger = logging.getLogger(__name__)

# Substrings of a judge verdict that count as a win; anything else is a loss
WON_INDICATORS = ("WON", "GANAD")


def build_judge_prompt(prediction: Prediction, match: Match) -> str:
    return (
        "Act as a betting judge. "
        f'Bet: "{prediction.pick}". '
        f"Final result: {match.home_team} {match.score} {match.away_team}. "
        'Answer with exactly one word: "WON" or "LOST".'
    )


def classify_verdict(verdict: str) -> PredictionStatus:
    """WON only when the verdict clearly says so. Ambiguous answers are LOST."""
    text = (verdict or "").upper()
    if any(indicator in text for indicator in WON_INDICATORS):
        return PredictionStatus.WON
    return PredictionStatus.LOST


def is_abstained(prediction: Prediction) -> bool:
    """A zero stake or a pass pick is neither a win nor a loss."""
    return prediction.stake == 0 or is_pass_pick(prediction.pick)


class SettlementReconciler:
    """
    Settles pending predictions against finished match results.
    """

    def __init__(
        self,
        repository: PredictionRepository,
        results: MatchResultsProvider,
        caller: RateLimitedCaller,
    ):
        self.repository = repository
        self.results = results
        self.caller = caller
        # One run at a time: overlapping runs would judge the same pending rows
        self._run_lock = asyncio.Lock()

    async def reconcile_pending(
        self,
        predictions: Optional[Sequence[Prediction]] = None,
    ) -> SettlementSummary:
        """
        Settle predictions in input order.

        Args:
            predictions: Predictions to settle. Defaults to every PENDING
                prediction in the store.

        Returns:
            SettlementSummary whose counters add up to len(predictions)
        """
        async with self._run_lock:
            if predictions is None:
                predictions = await self.repository.find_pending()

            summary = SettlementSummary()
            logger.info(f"SETTLEMENT: Checking {len(predictions)} predictions...")

            for prediction in predictions:
                outcome = await self._settle_one(prediction)
                summary.record(outcome)

        logger.info(
            f"SETTLEMENT: won={summary.won} lost={summary.lost} "
            f"void={summary.voided} skipped={summary.skipped}"
        )
        return summary

    async def _settle_one(self, prediction: Prediction) -> SettlementOutcome:
        key = prediction.key
        if not prediction.is_pending:
            return SettlementOutcome(key=key, reason=f"already {prediction.status.value}")

        # The caller's copy may be stale; the stored row decides
        try:
            stored = await self.repository.find_by_key(key)
        except Exception as e:
            logger.warning(f"Skip settlement: {key}: could not read stored prediction: {e}")
            return SettlementOutcome(key=key, reason=f"store read failed: {e}")
        if stored is not None and not stored.is_pending:
            logger.info(f"Skip settlement: {key}: already {stored.status.value}")
            return SettlementOutcome(key=key, reason=f"already {stored.status.value}")

        try:
            match = await self._find_finished_match(prediction)
        except LookupMissException as e:
            logger.info(f"Skip settlement: {e}")
            return SettlementOutcome(key=key, reason=e.reason)
        except Exception as e:
            logger.warning(f"Skip settlement: {key}: results fetch failed: {e}")
            return SettlementOutcome(key=key, reason=f"results fetch failed: {e}")

        real_score = match.score
        if is_abstained(prediction):
            status = PredictionStatus.VOID
        else:
            try:
                verdict = await self.caller.call(build_judge_prompt(prediction, match))
            except Exception as e:
                logger.warning(f"Skip settlement: {key}: judge call failed: {e}")
                return SettlementOutcome(key=key, real_score=real_score, reason=f"judge failed: {e}")
            status = classify_verdict(verdict)

        try:
            await self.repository.upsert(prediction.settled(status, real_score))
        except Exception as e:
            logger.error(f"Skip settlement: {key}: could not persist {status.value}: {e}")
            return SettlementOutcome(key=key, real_score=real_score, reason=f"persist failed: {e}")

        logger.info(f"{status.value}: {prediction.home_team} vs {prediction.away_team} ({real_score})")
        return SettlementOutcome(key=key, status=status, real_score=real_score)

    async def _find_finished_match(self, prediction: Prediction) -> Match:
        matches = await self.results.list_matches(
            prediction.league_code,
            prediction.match_date,
            prediction.match_date,
            status="FINISHED",
        )
        if matches is None:
            raise RuntimeError("results provider unavailable")

        for match in matches:
            if names_likely_match(match.home_team, prediction.home_team) and names_likely_match(
                match.away_team, prediction.away_team
            ):
                if not match.is_finished:
                    raise LookupMissException(prediction.key, "score not final yet")
                return match

        raise LookupMissException(prediction.key)
