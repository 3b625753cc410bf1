"""
Unit Tests for Domain Entities

Tests the prediction ledger entry, fixtures and their validation logic.
"""

import pytest
from datetime import date

from tipster_ai.domain.entities.entities import Match
from tipster_ai.domain.entities.prediction import (
    BankrollSummary,
    ConfidenceLevel,
    PredictionStatus,
    SettlementOutcome,
    SettlementSummary,
    build_prediction_key,
)
from tests.mocks import make_match, make_prediction


class TestPrediction:
    """Tests for Prediction entity."""

    def test_key_is_home_away_date(self):
        """Test the prediction key is derived from teams and date."""
        prediction = make_prediction("Real Madrid", "Barcelona", date(2025, 3, 2))
        assert prediction.key == "Real Madrid-Barcelona-2025-03-02"
        assert prediction.key == build_prediction_key("Real Madrid", "Barcelona", date(2025, 3, 2))

    def test_new_prediction_is_pending(self):
        prediction = make_prediction()
        assert prediction.is_pending
        assert prediction.real_score is None
        assert prediction.settled_at is None

    def test_settled_returns_copy(self):
        """Test settling returns a new object and leaves the input pending."""
        prediction = make_prediction()
        settled = prediction.settled(PredictionStatus.WON, "2-1")

        assert settled.status == PredictionStatus.WON
        assert settled.real_score == "2-1"
        assert settled.settled_at is not None
        assert settled.key == prediction.key
        assert prediction.status == PredictionStatus.PENDING

    def test_settle_twice_raises_error(self):
        """Test a terminal prediction cannot be settled again."""
        settled = make_prediction().settled(PredictionStatus.LOST, "0-1")
        with pytest.raises(ValueError, match="already settled"):
            settled.settled(PredictionStatus.WON, "0-1")

    def test_settle_to_pending_raises_error(self):
        with pytest.raises(ValueError):
            make_prediction().settled(PredictionStatus.PENDING, "1-0")

    def test_negative_stake_raises_error(self):
        with pytest.raises(ValueError, match="Stake cannot be negative"):
            make_prediction(stake=-1)

    def test_empty_team_raises_error(self):
        with pytest.raises(ValueError):
            make_prediction(home="")


class TestStatusAndConfidence:
    """Tests for the status and confidence enums."""

    def test_terminal_statuses(self):
        assert not PredictionStatus.PENDING.is_terminal
        assert PredictionStatus.WON.is_terminal
        assert PredictionStatus.LOST.is_terminal
        assert PredictionStatus.VOID.is_terminal

    @pytest.mark.parametrize("label,expected", [
        ("🟢", ConfidenceLevel.HIGH),
        ("alta", ConfidenceLevel.HIGH),
        ("HIGH", ConfidenceLevel.HIGH),
        ("🔴", ConfidenceLevel.LOW),
        ("baja", ConfidenceLevel.LOW),
        ("🟡", ConfidenceLevel.MEDIUM),
        ("", ConfidenceLevel.MEDIUM),
        (None, ConfidenceLevel.MEDIUM),
    ])
    def test_confidence_from_label(self, label, expected):
        assert ConfidenceLevel.from_label(label) == expected

    def test_confidence_is_ordered(self):
        assert ConfidenceLevel.HIGH.rank > ConfidenceLevel.MEDIUM.rank > ConfidenceLevel.LOW.rank


class TestMatch:
    """Tests for Match entity."""

    def test_finished_match_score(self):
        match = make_match("Arsenal", "Chelsea", date(2025, 1, 15), home_goals=3, away_goals=0)
        assert match.is_finished
        assert match.score == "3-0"
        assert match.describe() == "Arsenal 3-0 Chelsea"

    def test_scheduled_match_has_no_score(self):
        match = Match(
            id="1",
            home_team="Arsenal",
            away_team="Chelsea",
            league_code="PL",
            match_date=date(2025, 1, 15),
        )
        assert not match.is_finished
        assert match.score is None
        assert match.describe() == "Arsenal vs Chelsea"

    def test_match_requires_team_names(self):
        with pytest.raises(ValueError, match="Match requires both team names"):
            Match(id="1", home_team="", away_team="Chelsea", league_code="PL", match_date=date(2025, 1, 15))


class TestSummaries:
    """Tests for settlement and bankroll summaries."""

    def test_settlement_summary_counts(self):
        summary = SettlementSummary()
        summary.record(SettlementOutcome(key="a", status=PredictionStatus.WON, real_score="1-0"))
        summary.record(SettlementOutcome(key="b", status=PredictionStatus.LOST, real_score="0-1"))
        summary.record(SettlementOutcome(key="c", status=PredictionStatus.VOID, real_score="0-0"))
        summary.record(SettlementOutcome(key="d", reason="no finished fixture found"))

        assert (summary.won, summary.lost, summary.voided, summary.skipped) == (1, 1, 1, 1)
        assert summary.total == 4
        assert summary.outcomes[3].skipped

    def test_win_rate_none_without_decided_picks(self):
        assert BankrollSummary(voided=3).win_rate is None
