"""
Tipster Service Module

Produces picks for single matches:
1. Returns the stored prediction when the match was already analyzed
2. Gathers context (recent results, our own settled picks for both teams)
3. Asks the generation service for a structured pick
4. Persists the pick as PENDING

Errors propagate to the caller, which decides what to show the user.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from tipster_ai.config import FORM_LIMIT, HISTORY_LIMIT, UPCOMING_DAYS, UPCOMING_LIMIT
from tipster_ai.domain.entities.entities import Match
from tipster_ai.domain.entities.prediction import (
    Prediction,
    build_prediction_key,
)
from tipster_ai.domain.repositories.repositories import MatchResultsProvider, PredictionRepository
from tipster_ai.domain.services.rate_limited_caller import RateLimitedCaller
from tipster_ai.domain.services.response_parsing import parse_structured_pick
from tipster_ai.domain.services.team_matching import names_likely_match
from tipster_ai.utils.time_utils import get_today

logger = logging.getLogger(__name__)

FORM_WINDOW_DAYS = 30


@dataclass
class UpcomingMatch:
    """A scheduled fixture and whether we already hold a pick for it."""
    match: Match
    analyzed: bool

    @property
    def key(self) -> str:
        return build_prediction_key(self.match.home_team, self.match.away_team, self.match.match_date)


def build_analysis_prompt(
    home: str,
    away: str,
    league_code: str,
    match_date: date,
    recent_form: str,
    history: str,
) -> str:
    return f"""Act as a professional sports trading analyst. Your goal is not to guess the winner but to find value bets.

MATCH:
- Fixture: {home} vs {away}
- League: {league_code}
- Date: {match_date.isoformat()}

RECENT RESULTS:
{recent_form}

OUR PAST PICKS ON THESE TEAMS:
{history}
(Use this record to avoid repeating misjudgements and to adjust your confidence.)

INSTRUCTIONS:
1. Compare how the home side's style affects the away side, based on recent results.
2. Explain why this bet COULD lose.
3. If the data is contradictory or there is no clear statistical edge, the pick MUST be "PASS / NO VALUE" with confidence 🔴 and stake 0.
4. Stake scale 1 to 10. Only use 8-10 when the probability is overwhelming.

Answer ONLY with a JSON object, no text outside it and no code fences:
{{
  "pick": "The bet. If unclear, 'PASS / NO VALUE'",
  "confidence": "🟢, 🟡 or 🔴",
  "stake": 0,
  "analysis": "Technical summary of the statistical edge (max 250 characters).",
  "score": "Most likely exact score.",
  "advice": "Specific external factor that could ruin the pick."
}}"""


def build_news_prompt(home: str, away: str) -> str:
    return (
        "Answer in at most 30 words: are there absences, key injuries or critical "
        f"context for the match {home} vs {away} today?"
    )


class TipsterService:
    """
    Generates and caches one prediction per (home, away, date).
    """

    def __init__(
        self,
        repository: PredictionRepository,
        results: MatchResultsProvider,
        caller: RateLimitedCaller,
        today: Callable[[], date] = get_today,
    ):
        self.repository = repository
        self.results = results
        self.caller = caller
        self._today = today
        # One lock per key so concurrent requests for a match spend one call.
        # Entries live only while some request for the key is in flight.
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._key_waiters: dict[str, int] = {}

    async def generate_pick(
        self,
        home_team: str,
        away_team: str,
        league_code: str,
        match_date: date,
    ) -> Prediction:
        """
        Get the pick for a match, generating it on first request.

        Raises:
            ThrottledException: generation quota exhausted (retry later)
            ServiceException: any other generation failure
            PersistenceException: the stored pick could not be read, or the new one written
        """
        key = build_prediction_key(home_team, away_team, match_date)
        lock = self._key_locks.setdefault(key, asyncio.Lock())
        self._key_waiters[key] = self._key_waiters.get(key, 0) + 1
        try:
            async with lock:
                return await self._generate_locked(key, home_team, away_team, league_code, match_date)
        finally:
            self._key_waiters[key] -= 1
            if not self._key_waiters[key]:
                del self._key_waiters[key]
                del self._key_locks[key]

    async def _generate_locked(
        self,
        key: str,
        home_team: str,
        away_team: str,
        league_code: str,
        match_date: date,
    ) -> Prediction:
        cached = await self.repository.find_by_key(key)
        if cached:
            logger.info(f"Returning stored pick for {key}")
            return cached

        recent_form = await self.get_recent_form(league_code, home_team, away_team)
        history = await self.get_history_summary(home_team, away_team)
        prompt = build_analysis_prompt(home_team, away_team, league_code, match_date, recent_form, history)

        raw_text = await self.caller.call(prompt)
        result = parse_structured_pick(raw_text)
        fields = result.fields
        if result.is_default:
            logger.warning(f"Unstructured analysis for {key}: {result.error}")

        prediction = Prediction(
            home_team=home_team,
            away_team=away_team,
            match_date=match_date,
            league_code=league_code,
            pick=fields.pick,
            analysis=fields.analysis,
            stake=fields.stake,
            confidence=fields.confidence,
            predicted_score=fields.predicted_score,
            advice=fields.advice,
        )
        await self.repository.upsert(prediction)
        logger.info(f"Stored pick for {key}: {prediction.pick} (stake {prediction.stake:g})")
        return prediction

    async def scan_match_news(self, home_team: str, away_team: str) -> str:
        """Quick scan for absences or critical context before a match."""
        return await self.caller.call(build_news_prompt(home_team, away_team))

    async def list_upcoming(
        self,
        league_code: str,
        days: int = UPCOMING_DAYS,
        limit: int = UPCOMING_LIMIT,
    ) -> Optional[list[UpcomingMatch]]:
        """
        Scheduled fixtures of a league for the next few days.

        Returns None when the results provider is unavailable.
        """
        today = self._today()
        matches = await self.results.list_matches(
            league_code, today, today + timedelta(days=days), status="SCHEDULED"
        )
        if matches is None:
            return None

        upcoming = []
        for match in matches[:limit]:
            key = build_prediction_key(match.home_team, match.away_team, match.match_date)
            existing = await self.repository.find_by_key(key)
            upcoming.append(UpcomingMatch(match=match, analyzed=existing is not None))
        return upcoming

    async def get_recent_form(self, league_code: str, home_team: str, away_team: str) -> str:
        """Recent finished results of either team, as prompt text."""
        today = self._today()
        try:
            matches = await self.results.list_matches(
                league_code, today - timedelta(days=FORM_WINDOW_DAYS), today, status="FINISHED"
            )
        except Exception as e:
            logger.warning(f"Could not fetch recent form for {home_team} vs {away_team}: {e}")
            matches = None

        if matches is None:
            return "Recent results unavailable."

        relevant = [
            m for m in matches
            if m.is_finished and any(
                names_likely_match(team, name)
                for team in (m.home_team, m.away_team)
                for name in (home_team, away_team)
            )
        ]
        relevant.sort(key=lambda m: m.match_date, reverse=True)
        lines = [m.describe() for m in relevant[:FORM_LIMIT]]
        return " | ".join(lines) or "No recent results."

    async def get_history_summary(self, home_team: str, away_team: str) -> str:
        """Our settled picks on either team, as prompt text."""
        history = await self.repository.find_history_for_teams(home_team, away_team, limit=HISTORY_LIMIT)
        if not history:
            return "No previous picks recorded for these teams."

        lines = []
        for p in history:
            lines.append(
                f"- {p.home_team} vs {p.away_team} | Pick: {p.pick} | Result: {p.status.value} | Score: {p.real_score}"
            )
        return "\n".join(lines)
