import asyncio
import logging
from typing import Callable, Optional, TypeVar
from sqlalchemy import Column, String, Text, Float, Date, DateTime, or_
from sqlalchemy.exc import SQLAlchemyError

from tipster_ai.domain.entities.prediction import ConfidenceLevel, Prediction, PredictionStatus
from tipster_ai.domain.exceptions import PersistenceException
from tipster_ai.domain.repositories.repositories import PredictionRepository
from tipster_ai.infrastructure.database.database_service import Base, DatabaseService, get_database_service
from tipster_ai.utils.time_utils import get_utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

class PredictionModel(Base):
    """
    SQLAlchemy model for the prediction ledger. One row per (home, away, date).
    """
    __tablename__ = "predictions"

    key = Column(String, primary_key=True, index=True)  # "{home}-{away}-{date}"
    home_team = Column(String, nullable=False, index=True)
    away_team = Column(String, nullable=False, index=True)
    match_date = Column(Date, nullable=False, index=True)
    league_code = Column(String, nullable=False)
    pick = Column(String, nullable=False)
    analysis = Column(Text, default="")
    stake = Column(Float, nullable=False, default=0.0)
    confidence = Column(String, nullable=False, default=ConfidenceLevel.MEDIUM.value)
    predicted_score = Column(String, nullable=True)
    advice = Column(Text, nullable=True)
    real_score = Column(String, nullable=True)
    status = Column(String, nullable=False, default=PredictionStatus.PENDING.value, index=True)
    created_at = Column(DateTime, default=get_utc_now)
    settled_at = Column(DateTime, nullable=True)

class SqlAlchemyPredictionRepository(PredictionRepository):
    """
    Prediction store on SQLAlchemy.

    Sessions are synchronous, so every query runs in the default executor
    and the event loop keeps serving while the database works.
    List reads log and return empty results on database errors; key lookups
    and writes raise PersistenceException (writes roll back first).
    """

    def __init__(self, db_service: DatabaseService = None):
        self.db_service = db_service or get_database_service()
        # Note: Tables are created in main.py lifespan to avoid redundant checks

    def create_tables(self):
        """Create all tables defined in Base."""
        self.db_service.create_tables()

    @staticmethod
    def _to_entity(record: PredictionModel) -> Prediction:
        return Prediction(
            home_team=record.home_team,
            away_team=record.away_team,
            match_date=record.match_date,
            league_code=record.league_code,
            pick=record.pick,
            analysis=record.analysis or "",
            stake=record.stake or 0.0,
            confidence=ConfidenceLevel(record.confidence),
            predicted_score=record.predicted_score,
            advice=record.advice,
            real_score=record.real_score,
            status=PredictionStatus(record.status),
            created_at=record.created_at,
            settled_at=record.settled_at,
        )

    @staticmethod
    def _apply(record: PredictionModel, prediction: Prediction) -> None:
        record.home_team = prediction.home_team
        record.away_team = prediction.away_team
        record.match_date = prediction.match_date
        record.league_code = prediction.league_code
        record.pick = prediction.pick
        record.analysis = prediction.analysis
        record.stake = prediction.stake
        record.confidence = prediction.confidence.value
        record.predicted_score = prediction.predicted_score
        record.advice = prediction.advice
        record.real_score = prediction.real_score
        record.status = prediction.status.value
        record.created_at = prediction.created_at
        record.settled_at = prediction.settled_at

    async def _run(self, func: Callable[..., T], *args) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def _load(self, key: str) -> Optional[Prediction]:
        session = self.db_service.get_session()
        try:
            record = session.query(PredictionModel).filter(PredictionModel.key == key).first()
            return self._to_entity(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve prediction {key}: {e}")
            raise PersistenceException(f"Failed to retrieve prediction {key}: {e}") from e
        finally:
            session.close()

    def _save(self, prediction: Prediction) -> None:
        session = self.db_service.get_session()
        key = prediction.key
        try:
            record = session.query(PredictionModel).filter(PredictionModel.key == key).first()
            if not record:
                record = PredictionModel(key=key)
                session.add(record)
            self._apply(record, prediction)

            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to save prediction {key}: {e}")
            raise PersistenceException(f"Failed to save prediction {key}: {e}") from e
        finally:
            session.close()

    def _query_list(self, description: str, build_query) -> list[Prediction]:
        session = self.db_service.get_session()
        try:
            return [self._to_entity(r) for r in build_query(session).all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve {description}: {e}")
            return []
        finally:
            session.close()

    async def find_by_key(self, key: str) -> Optional[Prediction]:
        """
        Retrieve a prediction by key.

        A database error raises instead of reading as a miss, so callers
        never regenerate or overwrite a stored pick.
        """
        return await self._run(self._load, key)

    async def upsert(self, prediction: Prediction) -> None:
        """
        Save or update a prediction by key.
        """
        await self._run(self._save, prediction)

    async def find_pending(self) -> list[Prediction]:
        """
        Retrieve all PENDING predictions, oldest match first.
        """
        def build(session):
            return session.query(PredictionModel).filter(
                PredictionModel.status == PredictionStatus.PENDING.value
            ).order_by(PredictionModel.match_date.asc())

        return await self._run(self._query_list, "pending predictions", build)

    async def find_settled(self) -> list[Prediction]:
        """
        Retrieve every settled prediction, for bankroll reporting.
        """
        def build(session):
            return session.query(PredictionModel).filter(
                PredictionModel.status != PredictionStatus.PENDING.value
            ).order_by(PredictionModel.match_date.asc())

        return await self._run(self._query_list, "settled predictions", build)

    async def find_history_for_teams(
        self,
        home_team: str,
        away_team: str,
        limit: int = 8,
    ) -> list[Prediction]:
        """
        Retrieve recent WON/LOST predictions where either team played.
        """
        teams = (home_team, away_team)

        def build(session):
            return session.query(PredictionModel).filter(
                or_(PredictionModel.home_team.in_(teams), PredictionModel.away_team.in_(teams)),
                PredictionModel.status.in_([PredictionStatus.WON.value, PredictionStatus.LOST.value]),
            ).order_by(PredictionModel.match_date.desc()).limit(limit)

        return await self._run(self._query_list, f"history for {home_team} / {away_team}", build)
