"""
ClariValue - Clarification Progress Store
Copyright (c) 2025 Vijaykumar Singh
Licensed under the Apache License 2.0

Persists in-progress clarification answers so a user can leave and resume a
valuation. The session calls save_progress/load_progress explicitly; any
debouncing belongs to the caller.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional

from sqlalchemy import JSON, Column, DateTime, String, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from clarivalue.domain.exceptions import ProgressStoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValuationProgress(Base):
    """Saved clarification answers per valuation session"""

    __tablename__ = "valuation_progress"

    session_id = Column(String(64), primary_key=True)
    answers = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class ProgressStore(ABC):
    """Narrow persistence interface used by ValuationSession"""

    @abstractmethod
    def save_progress(self, session_id: str, answers: Mapping[str, str]) -> None:
        """Merge answers into the stored AnswerSet of a session."""

    @abstractmethod
    def load_progress(self, session_id: str) -> Dict[str, str]:
        """Stored answers of a session, ``{}`` if none."""

    @abstractmethod
    def clear_progress(self, session_id: str) -> None:
        """Forget a session's answers."""


class InMemoryProgressStore(ProgressStore):
    """Process-local store for tests and the CLI's --no-persist mode"""

    def __init__(self):
        self._data: Dict[str, Dict[str, str]] = {}

    def save_progress(self, session_id: str, answers: Mapping[str, str]) -> None:
        self._data.setdefault(session_id, {}).update(answers)

    def load_progress(self, session_id: str) -> Dict[str, str]:
        return dict(self._data.get(session_id, {}))

    def clear_progress(self, session_id: str) -> None:
        self._data.pop(session_id, None)


class SqlProgressStore(ProgressStore):
    """SQLAlchemy-backed progress store (SQLite by default)"""

    def __init__(self, url: str = "sqlite:///data/clarivalue_progress.db", echo: bool = False):
        self.url = url
        self._ensure_sqlite_directory(url)
        try:
            self.engine = create_engine(url, echo=echo, pool_pre_ping=True)
            self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize progress store at {url}: {e}")
            raise ProgressStoreError(f"Failed to initialize progress store: {e}") from e

    @staticmethod
    def _ensure_sqlite_directory(url: str) -> None:
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_session(self):
        """Database session that commits on success and rolls back on error"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Progress store session error: {e}")
            raise ProgressStoreError(str(e)) from e
        finally:
            session.close()

    def save_progress(self, session_id: str, answers: Mapping[str, str]) -> None:
        with self.get_session() as session:
            row = session.get(ValuationProgress, session_id)
            if row is None:
                session.add(ValuationProgress(session_id=session_id, answers=dict(answers)))
            else:
                # JSON columns only track reassignment
                row.answers = {**(row.answers or {}), **answers}
        logger.debug(f"Saved {len(answers)} answers for session {session_id}")

    def load_progress(self, session_id: str) -> Dict[str, str]:
        with self.get_session() as session:
            row = session.get(ValuationProgress, session_id)
            return dict(row.answers or {}) if row is not None else {}

    def clear_progress(self, session_id: str) -> None:
        with self.get_session() as session:
            row = session.get(ValuationProgress, session_id)
            if row is not None:
                session.delete(row)

    def last_updated(self, session_id: str) -> Optional[datetime]:
        with self.get_session() as session:
            row = session.get(ValuationProgress, session_id)
            return row.updated_at if row is not None else None
