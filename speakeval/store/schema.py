"""
speakeval.store.schema - SQLAlchemy table mappings.

Only the columns the evaluation pipeline reads or writes are mapped.
"""

from __future__ import annotations

import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Question(Base):
    __tablename__ = "questions"
    id = Column(String, primary_key=True)
    text = Column(Text, nullable=False)

    responses = relationship("Response", back_populates="question")


class Response(Base):
    __tablename__ = "responses"
    id = Column(String, primary_key=True)
    candidate_test_id = Column(String, nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=True)
    video_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.datetime.now(datetime.timezone.utc))

    # Evaluation output, written together by the pipeline
    transcription = Column(Text, nullable=True)
    ai_score = Column(Float, nullable=True)
    ai_feedback = Column(Text, nullable=True)
    # Stored as the plain label; parsed with parse_level on read
    cefr_level = Column(String(3), nullable=True)

    question = relationship("Question", back_populates="responses")
