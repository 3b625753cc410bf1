"""
Unit Tests for SettlementReconciler

Tests settling PENDING predictions against finished fixtures, with
per-prediction failure isolation.
"""

import asyncio
import pytest
from datetime import date
from unittest.mock import AsyncMock

from tipster_ai.domain.entities.prediction import PredictionStatus
from tipster_ai.domain.exceptions import PersistenceException, ThrottledException
from tipster_ai.domain.services.rate_limited_caller import RateLimitedCaller
from tipster_ai.domain.services.settlement_reconciler import (
    SettlementReconciler,
    classify_verdict,
    is_abstained,
)
from tests.mocks import (
    FakeResultsProvider,
    InMemoryPredictionRepository,
    ScriptedGenerator,
    make_match,
    make_prediction,
)


def judge(*verdicts):
    caller = AsyncMock()
    caller.call.side_effect = list(verdicts)
    return caller


class TestReconcilePending:
    """Tests for the settlement run."""

    @pytest.mark.asyncio
    async def test_won_pick(self):
        """Test a correct pick is stored WON with the real score."""
        prediction = make_prediction(pick="Home win")
        repository = InMemoryPredictionRepository([prediction])
        results = FakeResultsProvider([make_match(home_goals=2, away_goals=1)])
        caller = judge("WON, the home team prevailed")

        summary = await SettlementReconciler(repository, results, caller).reconcile_pending([prediction])

        assert summary.won == 1
        stored = repository.rows[prediction.key]
        assert stored.status == PredictionStatus.WON
        assert stored.real_score == "2-1"
        assert stored.settled_at is not None
        prompt = caller.call.call_args[0][0]
        assert "Home win" in prompt
        assert "Arsenal 2-1 Chelsea" in prompt

    @pytest.mark.asyncio
    async def test_lost_pick(self):
        prediction = make_prediction(pick="Home win")
        repository = InMemoryPredictionRepository([prediction])
        results = FakeResultsProvider([make_match(home_goals=1, away_goals=1)])

        summary = await SettlementReconciler(repository, results, judge("LOST")).reconcile_pending([prediction])

        assert summary.lost == 1
        assert repository.rows[prediction.key].status == PredictionStatus.LOST
        assert repository.rows[prediction.key].real_score == "1-1"

    @pytest.mark.asyncio
    async def test_ambiguous_verdict_is_lost(self):
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])
        caller = judge("It is hard to say.")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match()]), caller
        ).reconcile_pending([prediction])

        assert summary.lost == 1

    @pytest.mark.asyncio
    async def test_zero_stake_is_void_without_judge(self):
        """Test an abstained pick is VOID and the judge is never called."""
        prediction = make_prediction(stake=0)
        repository = InMemoryPredictionRepository([prediction])
        caller = judge("WON")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match(home_goals=0, away_goals=0)]), caller
        ).reconcile_pending([prediction])

        assert summary.voided == 1
        caller.call.assert_not_called()
        stored = repository.rows[prediction.key]
        assert stored.status == PredictionStatus.VOID
        assert stored.real_score == "0-0"

    @pytest.mark.asyncio
    async def test_pass_pick_is_void(self):
        prediction = make_prediction(pick="PASS / NO VALUE", stake=3)
        repository = InMemoryPredictionRepository([prediction])
        caller = judge("WON")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match()]), caller
        ).reconcile_pending([prediction])

        assert summary.voided == 1
        caller.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_fuzzy_team_names(self):
        prediction = make_prediction(home="Real Madrid", away="Atlético Madrid", league_code="PD")
        repository = InMemoryPredictionRepository([prediction])
        match = make_match("Real Madrid CF", "Atletico Madrid", league_code="PD")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([match]), judge("WON")
        ).reconcile_pending([prediction])

        assert summary.won == 1

    @pytest.mark.asyncio
    async def test_no_matching_fixture_is_skipped(self):
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])
        caller = judge("WON")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match("Everton", "Fulham")]), caller
        ).reconcile_pending([prediction])

        assert summary.skipped == 1
        assert summary.outcomes[0].reason == "no finished fixture found"
        assert repository.rows[prediction.key].is_pending
        caller.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_unfinished_fixture_is_skipped(self):
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])

        summary = await SettlementReconciler(
            repository,
            FakeResultsProvider([make_match(home_goals=None, away_goals=None)]),
            judge("WON"),
        ).reconcile_pending([prediction])

        assert summary.skipped == 1
        assert summary.outcomes[0].reason == "score not final yet"
        assert repository.upserts == []

    @pytest.mark.asyncio
    async def test_unavailable_provider_is_skipped(self):
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])

        summary = await SettlementReconciler(
            repository, FakeResultsProvider(unavailable=True), judge("WON")
        ).reconcile_pending([prediction])

        assert summary.skipped == 1
        assert repository.rows[prediction.key].is_pending

    @pytest.mark.asyncio
    async def test_fetch_failure_does_not_abort_run(self):
        """Test five predictions where the third fetch raises."""
        days = [date(2025, 1, d) for d in range(10, 15)]
        predictions = [make_prediction(home=f"Home {i}", away=f"Away {i}", match_date=d) for i, d in enumerate(days)]
        matches = [make_match(f"Home {i}", f"Away {i}", d) for i, d in enumerate(days)]
        repository = InMemoryPredictionRepository(predictions)
        results = FakeResultsProvider(matches, fail_dates=[days[2]])
        caller = judge("WON", "LOST", "WON", "LOST")

        summary = await SettlementReconciler(repository, results, caller).reconcile_pending(predictions)

        assert summary.total == 5
        assert (summary.won, summary.lost, summary.skipped) == (2, 2, 1)
        assert summary.outcomes[2].skipped
        assert "results fetch failed" in summary.outcomes[2].reason
        assert repository.rows[predictions[2].key].is_pending
        assert [call[1] for call in results.calls] == days

    @pytest.mark.asyncio
    async def test_throttled_judge_is_skipped_and_run_continues(self):
        first = make_prediction(home="Arsenal")
        second = make_prediction(home="Liverpool")
        repository = InMemoryPredictionRepository([first, second])
        results = FakeResultsProvider([make_match("Arsenal"), make_match("Liverpool")])
        caller = judge(ThrottledException(), "WON")

        summary = await SettlementReconciler(repository, results, caller).reconcile_pending([first, second])

        assert summary.skipped == 1
        assert summary.won == 1
        assert repository.rows[first.key].is_pending
        assert repository.rows[second.key].status == PredictionStatus.WON

    @pytest.mark.asyncio
    async def test_persist_failure_leaves_prediction_pending(self):
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])
        repository.upsert = AsyncMock(side_effect=RuntimeError("disk full"))

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match()]), judge("WON")
        ).reconcile_pending([prediction])

        assert summary.skipped == 1
        assert "persist failed" in summary.outcomes[0].reason
        assert prediction.is_pending
        assert repository.rows[prediction.key].is_pending

    @pytest.mark.asyncio
    async def test_defaults_to_pending_predictions_from_store(self):
        pending = make_prediction(home="Arsenal")
        settled = make_prediction(home="Liverpool", status=PredictionStatus.WON, real_score="1-0")
        repository = InMemoryPredictionRepository([pending, settled])
        caller = judge("WON")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match("Arsenal")]), caller
        ).reconcile_pending()

        assert summary.total == 1
        assert summary.won == 1
        assert caller.call.call_count == 1

    @pytest.mark.asyncio
    async def test_already_settled_input_is_skipped(self):
        settled = make_prediction(status=PredictionStatus.LOST, real_score="0-2")
        repository = InMemoryPredictionRepository([settled])
        caller = judge("WON")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match()]), caller
        ).reconcile_pending([settled])

        assert summary.skipped == 1
        assert repository.rows[settled.key].status == PredictionStatus.LOST
        caller.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_input(self, repository):
        summary = await SettlementReconciler(
            repository, FakeResultsProvider(), judge()
        ).reconcile_pending([])

        assert summary.total == 0

    @pytest.mark.asyncio
    async def test_judge_calls_respect_interval(self, fake_clock):
        """Test judge calls through a real caller stay min_interval apart."""
        days = [date(2025, 2, d) for d in range(1, 4)]
        predictions = [make_prediction(home=f"Home {i}", match_date=d) for i, d in enumerate(days)]
        matches = [make_match(f"Home {i}", match_date=d) for i, d in enumerate(days)]
        repository = InMemoryPredictionRepository(predictions)
        generator = ScriptedGenerator([{"text": "WON"}], fake_clock)
        caller = RateLimitedCaller(
            generator,
            model="test-model",
            min_interval=4.0,
            throttle_cooldown=12.0,
            timeout=None,
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )

        summary = await SettlementReconciler(
            repository, FakeResultsProvider(matches), caller
        ).reconcile_pending(predictions)

        assert summary.won == 3
        times = generator.dispatch_times
        for earlier, later in zip(times, times[1:]):
            assert later - earlier >= 4.0 - 1e-9

    @pytest.mark.asyncio
    async def test_draw_no_bet_pick_goes_to_judge(self):
        """Test a staked market whose label contains "No Bet" is judged, not voided."""
        prediction = make_prediction(pick="Draw No Bet - Arsenal", stake=5)
        repository = InMemoryPredictionRepository([prediction])
        caller = judge("WON")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match(home_goals=2, away_goals=0)]), caller
        ).reconcile_pending([prediction])

        assert summary.won == 1
        assert summary.voided == 0
        assert caller.call.call_count == 1
        assert repository.rows[prediction.key].status == PredictionStatus.WON

    @pytest.mark.asyncio
    async def test_overlapping_runs_settle_once(self):
        """Test two concurrent runs spend one judge call and keep the first verdict."""
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])
        verdicts = ["WON", "LOST"]

        async def slow_judge(prompt):
            await asyncio.sleep(0.01)
            return verdicts.pop(0)

        caller = AsyncMock()
        caller.call.side_effect = slow_judge
        reconciler = SettlementReconciler(repository, FakeResultsProvider([make_match()]), caller)

        first, second = await asyncio.gather(reconciler.reconcile_pending(), reconciler.reconcile_pending())

        assert first.won + second.won == 1
        assert first.lost + second.lost == 0
        assert caller.call.call_count == 1
        assert repository.rows[prediction.key].status == PredictionStatus.WON
        assert [p.status for p in repository.upserts] == [PredictionStatus.WON]

    @pytest.mark.asyncio
    async def test_stale_pending_copy_is_not_settled_again(self):
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])
        caller = judge("WON", "LOST")
        reconciler = SettlementReconciler(repository, FakeResultsProvider([make_match()]), caller)

        await reconciler.reconcile_pending([prediction])
        summary = await reconciler.reconcile_pending([prediction])

        assert summary.skipped == 1
        assert summary.outcomes[0].reason == "already WON"
        assert caller.call.call_count == 1
        assert repository.rows[prediction.key].status == PredictionStatus.WON

    @pytest.mark.asyncio
    async def test_store_read_failure_is_skipped(self):
        prediction = make_prediction()
        repository = InMemoryPredictionRepository([prediction])
        repository.find_by_key = AsyncMock(side_effect=PersistenceException("database is locked"))
        caller = judge("WON")

        summary = await SettlementReconciler(
            repository, FakeResultsProvider([make_match()]), caller
        ).reconcile_pending([prediction])

        assert summary.skipped == 1
        assert "store read failed" in summary.outcomes[0].reason
        caller.call.assert_not_called()
        assert repository.upserts == []


class TestHelpers:
    """Tests for verdict classification and abstain detection."""

    @pytest.mark.parametrize("verdict,expected", [
        ("WON", PredictionStatus.WON),
        ("won.", PredictionStatus.WON),
        ("GANADA", PredictionStatus.WON),
        ("LOST", PredictionStatus.LOST),
        ("I cannot determine this", PredictionStatus.LOST),
        ("", PredictionStatus.LOST),
    ])
    def test_classify_verdict(self, verdict, expected):
        assert classify_verdict(verdict) == expected

    def test_is_abstained(self):
        assert is_abstained(make_prediction(stake=0))
        assert is_abstained(make_prediction(pick="No bet"))
        assert not is_abstained(make_prediction(pick="Away win", stake=2))
