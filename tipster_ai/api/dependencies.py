"""
API Dependencies Module

Provides dependency injection for FastAPI routes.
Services share one RateLimitedCaller so every generation call goes
through the same interval gate.
"""

from functools import lru_cache

from tipster_ai.infrastructure.ai.gemini_client import GeminiClient
from tipster_ai.infrastructure.data_sources.football_data_org import FootballDataOrgSource
from tipster_ai.infrastructure.repositories.prediction_repository import SqlAlchemyPredictionRepository
from tipster_ai.domain.services.bankroll_service import BankrollService
from tipster_ai.domain.services.rate_limited_caller import RateLimitedCaller
from tipster_ai.domain.services.settlement_reconciler import SettlementReconciler
from tipster_ai.domain.services.tipster_service import TipsterService


@lru_cache()
def get_gemini_client() -> GeminiClient:
    """Get Gemini generation client (cached)."""
    return GeminiClient()


@lru_cache()
def get_football_data_org() -> FootballDataOrgSource:
    """Get Football-Data.org data source (cached)."""
    return FootballDataOrgSource()


@lru_cache()
def get_prediction_repository() -> SqlAlchemyPredictionRepository:
    """Get prediction repository (cached)."""
    return SqlAlchemyPredictionRepository()


@lru_cache()
def get_rate_limited_caller() -> RateLimitedCaller:
    """Get the shared rate limited caller (cached)."""
    return RateLimitedCaller(get_gemini_client())


@lru_cache()
def get_tipster_service() -> TipsterService:
    """Get tipster service (cached)."""
    return TipsterService(
        repository=get_prediction_repository(),
        results=get_football_data_org(),
        caller=get_rate_limited_caller(),
    )


@lru_cache()
def get_settlement_reconciler() -> SettlementReconciler:
    """Get settlement reconciler (cached)."""
    return SettlementReconciler(
        repository=get_prediction_repository(),
        results=get_football_data_org(),
        caller=get_rate_limited_caller(),
    )


@lru_cache()
def get_bankroll_service() -> BankrollService:
    """Get bankroll service (cached)."""
    return BankrollService()
