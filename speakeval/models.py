"""
speakeval.models - Pipeline data types.

Read-only snapshots of stored responses, evaluation results, and the
per-item outcomes collected into a batch report.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from speakeval.levels import CEFRLevel


class ItemState(str, Enum):
    """Stages a response passes through during one pipeline run."""

    FETCHED = "fetched"
    ACQUIRED = "acquired"
    EXTRACTED = "extracted"
    TRANSCRIBED = "transcribed"
    EVALUATED = "evaluated"
    PERSISTED = "persisted"
    CLEANED = "cleaned"
    FAILED = "failed"
    SKIPPED = "skipped"


class ResponseRecord(BaseModel):
    """A candidate response as loaded for evaluation."""

    model_config = {"frozen": True}

    id: str
    candidate_test_id: str
    video_url: str | None = None
    question_text: str = ""
    transcription: str | None = None
    ai_score: float | None = None
    ai_feedback: str | None = None
    cefr_level: CEFRLevel | None = None

    @property
    def is_processed(self) -> bool:
        return all(
            value is not None
            for value in (self.transcription, self.ai_score, self.ai_feedback, self.cefr_level)
        )


class EvaluationResult(BaseModel):
    """Score, feedback, and level produced for one transcript."""

    score: float = Field(ge=0.0, le=100.0)
    feedback: str
    level: CEFRLevel


class ItemOutcome(BaseModel):
    """What happened to one response during a batch run."""

    response_id: str
    state: ItemState
    failed_stage: ItemState | None = None
    error: str | None = None
    transcript: str | None = None
    result: EvaluationResult | None = None


class BatchReport(BaseModel):
    """Summary of one batch run."""

    candidate_test_id: str
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None
    items: list[ItemOutcome] = Field(default_factory=list)

    def _count(self, state: ItemState) -> int:
        return sum(1 for item in self.items if item.state == state)

    @property
    def evaluated(self) -> int:
        return self._count(ItemState.CLEANED)

    @property
    def failed(self) -> int:
        return self._count(ItemState.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ItemState.SKIPPED)

    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.items),
            "evaluated": self.evaluated,
            "failed": self.failed,
            "skipped": self.skipped,
        }
