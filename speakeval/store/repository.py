"""
speakeval.store.repository - Response queries and result write-back.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, select, update
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session

from speakeval.exceptions import BatchLoadError, PersistenceError, StoreError
from speakeval.levels import parse_level
from speakeval.logging import logger
from speakeval.models import EvaluationResult, ResponseRecord
from speakeval.store.schema import Base, Question, Response


class ResponseStore:
    """Data-access handle bound to one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _to_record(self, response: Response, question_text: str | None) -> ResponseRecord:
        return ResponseRecord(
            id=response.id,
            candidate_test_id=response.candidate_test_id,
            video_url=response.video_url,
            question_text=question_text or "",
            transcription=response.transcription,
            ai_score=response.ai_score,
            ai_feedback=response.ai_feedback,
            cefr_level=parse_level(response.cefr_level),
        )

    def fetch_responses(self, candidate_test_id: str) -> list[ResponseRecord]:
        """Load every response of a test session with its question text.

        Raises:
            BatchLoadError: If the query fails
        """
        stmt = (
            select(Response, Question.text)
            .outerjoin(Question, Response.question_id == Question.id)
            .where(Response.candidate_test_id == candidate_test_id)
            .order_by(Response.created_at, Response.id)
        )
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BatchLoadError(f"Could not load responses for {candidate_test_id}: {e}") from e

        return [self._to_record(response, text) for response, text in rows]

    def get_response(self, response_id: str) -> ResponseRecord | None:
        """Load a single response by id."""
        stmt = (
            select(Response, Question.text)
            .outerjoin(Question, Response.question_id == Question.id)
            .where(Response.id == response_id)
        )
        try:
            row = self.session.execute(stmt).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Could not load response {response_id}: {e}") from e
        if row is None:
            return None
        return self._to_record(row[0], row[1])

    def save_result(self, response_id: str, transcript: str, result: EvaluationResult) -> None:
        """Write transcript, score, feedback, and level in one UPDATE.

        Raises:
            PersistenceError: If the row is missing or the write fails
        """
        stmt = (
            update(Response)
            .where(Response.id == response_id)
            .values(
                transcription=transcript,
                ai_score=result.score,
                ai_feedback=result.feedback,
                cefr_level=result.level.value,
            )
        )
        try:
            outcome = self.session.execute(stmt)
            if outcome.rowcount == 0:
                raise PersistenceError(f"Response {response_id} no longer exists")
            self.session.commit()
        except PersistenceError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Could not save results for {response_id}: {e}") from e

        logger.debug("Saved evaluation for response %s", response_id)


@contextmanager
def open_store(database_url: str, create_schema: bool = False) -> Iterator[ResponseStore]:
    """Open a store for the duration of a block.

    Args:
        database_url: SQLAlchemy database URL
        create_schema: Create missing tables before yielding

    Yields:
        ResponseStore bound to a fresh session

    Raises:
        StoreError: If the engine cannot be created or the schema set up
    """
    try:
        engine = create_engine(database_url)
    except (ArgumentError, ImportError) as e:
        raise StoreError(f"Invalid database URL {database_url!r}: {e}") from e

    try:
        if create_schema:
            try:
                Base.metadata.create_all(engine)
            except SQLAlchemyError as e:
                raise StoreError(f"Could not create schema: {e}") from e
        with Session(engine) as session:
            yield ResponseStore(session)
    finally:
        engine.dispose()
