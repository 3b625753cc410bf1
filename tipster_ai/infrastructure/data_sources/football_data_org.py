"""
Football-Data.org Data Source

Fixtures and final scores for the competitions the tipster covers.

API Documentation: https://www.football-data.org/documentation/api
Free tier: 10 requests/minute
"""

import os
from datetime import date, datetime, timedelta
from typing import Optional
from dataclasses import dataclass
import logging
import asyncio

import httpx

from tipster_ai.domain.entities.entities import Match
from tipster_ai.domain.repositories.repositories import MatchResultsProvider
from tipster_ai.utils.time_utils import APP_TZ, get_utc_now


logger = logging.getLogger(__name__)


@dataclass
class FootballDataOrgConfig:
    """Configuration for Football-Data.org."""
    api_key: Optional[str] = None
    base_url: str = "https://api.football-data.org/v4"
    timeout: int = 30
    requests_per_minute: int = 10

    def __post_init__(self):
        if self.api_key is None:
            self.api_key = os.getenv("FOOTBALL_DATA_ORG_KEY")


# Competitions offered to users (Football-Data.org codes)
SUPPORTED_COMPETITIONS = {
    "PD": "LaLiga",
    "PL": "Premier League",
    "SA": "Serie A",
    "BL1": "Bundesliga",
    "CL": "Champions League",
    "FL1": "Ligue 1",
}

# Football-data.co.uk style aliases accepted for convenience
COMPETITION_CODE_MAPPING = {
    "E0": "PL",   # Premier League
    "SP1": "PD",  # La Liga
    "D1": "BL1",  # Bundesliga
    "I1": "SA",   # Serie A
    "F1": "FL1",  # Ligue 1
    "UCL": "CL",  # Champions League
}


def resolve_competition_code(league_code: str) -> str:
    """Map an alias to its Football-Data.org code; codes pass through unchanged."""
    code = (league_code or "").strip().upper()
    return COMPETITION_CODE_MAPPING.get(code, code)


class FootballDataOrgSource(MatchResultsProvider):
    """
    Data source for Football-Data.org.

    Provides scheduled fixtures and finished results per competition.
    Free tier: 10 requests/minute.
    """

    def __init__(
        self,
        config: Optional[FootballDataOrgConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the data source. ``transport`` is for tests."""
        self.config = config or FootballDataOrgConfig()
        self._transport = transport
        self._request_times: list[datetime] = []

    @property
    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self.config.api_key)

    async def _wait_for_rate_limit(self):
        """Wait if necessary to respect the per-minute request limit."""
        now = get_utc_now()
        minute_ago = now - timedelta(minutes=1)

        # Clean old request times
        self._request_times = [t for t in self._request_times if t > minute_ago]

        if len(self._request_times) >= self.config.requests_per_minute:
            # Wait until oldest request is more than a minute old
            wait_time = (self._request_times[0] + timedelta(minutes=1) - now).total_seconds()
            if wait_time > 0:
                logger.debug(f"Rate limiting: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)

    async def _make_request(
        self,
        endpoint: str,
        params: Optional[dict] = None,
    ) -> Optional[dict]:
        """
        Make authenticated request to Football-Data.org.

        Args:
            endpoint: API endpoint
            params: Query parameters

        Returns:
            JSON response or None if failed
        """
        if not self.is_configured:
            logger.warning("Football-Data.org not configured (no API key)")
            return None

        await self._wait_for_rate_limit()

        url = f"{self.config.base_url}{endpoint}"
        headers = {
            "X-Auth-Token": self.config.api_key,
        }

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    url,
                    headers=headers,
                    params=params,
                    timeout=self.config.timeout,
                )

                self._request_times.append(get_utc_now())

                if response.status_code == 429:
                    logger.warning("Football-Data.org rate limit hit")
                    return None

                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Football-Data.org HTTP error: {e}")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Football-Data.org request error: {e}")
            return None

    async def list_matches(
        self,
        league_code: str,
        date_from: date,
        date_to: date,
        status: Optional[str] = None,
    ) -> Optional[list[Match]]:
        """
        Get matches of a competition within a date range.

        Args:
            league_code: Football-Data.org code (or accepted alias)
            date_from: First day, inclusive
            date_to: Last day, inclusive
            status: Optional filter, e.g. "SCHEDULED" or "FINISHED"

        Returns:
            List of Match entities, or None if the request failed
        """
        comp_code = resolve_competition_code(league_code)
        params = {
            "dateFrom": date_from.isoformat(),
            "dateTo": date_to.isoformat(),
        }
        if status:
            params["status"] = status

        logger.info(f"Football-Data.org: fetching {comp_code} matches {date_from} to {date_to} ({status or 'any'})")
        data = await self._make_request(f"/competitions/{comp_code}/matches", params)

        if data is None:
            return None

        competition = data.get("competition") or {}
        matches = []
        for match_data in data.get("matches") or []:
            match = self._parse_match(match_data, comp_code, competition.get("name"))
            if match:
                matches.append(match)

        return matches

    def _parse_match(self, match_data: dict, comp_code: str, comp_name: Optional[str]) -> Optional[Match]:
        """Parse Football-Data.org match into Match entity."""
        try:
            utc_date = match_data.get("utcDate", "")
            match_date = datetime.fromisoformat(utc_date.replace("Z", "+00:00")).astimezone(APP_TZ).date()

            # Get score if available
            score = (match_data.get("score") or {}).get("fullTime") or {}

            return Match(
                id=str(match_data.get("id", "")),
                home_team=(match_data.get("homeTeam") or {}).get("name", ""),
                away_team=(match_data.get("awayTeam") or {}).get("name", ""),
                league_code=comp_code,
                league_name=comp_name,
                match_date=match_date,
                home_goals=score.get("home"),
                away_goals=score.get("away"),
                status=match_data.get("status", "SCHEDULED"),
            )

        except (ValueError, TypeError, AttributeError) as e:
            logger.debug(f"Failed to parse match: {e}")
            return None
