"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from speakeval.config import EvalConfig
from speakeval.levels import CEFRLevel
from speakeval.store.schema import Base, Question, Response

MOCK_TRANSCRIPT = "This is a mock transcript."
MOCK_FEEDBACK = "Good fluency and grammar. Some minor errors."


class DummyStreamResponse:
    """Streaming response stub that supports `with` and `iter_content()`."""

    def __init__(self, chunks: list[bytes], status_error: Exception | None = None) -> None:
        self._chunks = chunks
        self._status_error = status_error

    def __enter__(self) -> DummyStreamResponse:
        return self

    def __exit__(self, _exc_type: object, _exc: object, _tb: object) -> bool:
        return False

    def raise_for_status(self) -> None:
        if self._status_error:
            raise self._status_error

    def iter_content(self, chunk_size: int = 1, **_kwargs: object) -> list[bytes]:
        return self._chunks


class FakeHTTP:
    """Records GET calls and serves a fixed body."""

    def __init__(self, body: bytes = b"remote video bytes") -> None:
        self.body = body
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.status_error: Exception | None = None

    def get(self, url: str, **kwargs: Any) -> DummyStreamResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error:
            raise self.error
        return DummyStreamResponse(
            [self.body[:4], self.body[4:]],
            status_error=self.status_error,
        )


class FakeFFmpeg:
    """Stands in for subprocess.run: writes the output WAV or fails."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.returncode = 0

    def __call__(self, cmd: list[str], **_kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(cmd)
        if self.returncode == 0:
            Path(cmd[-1]).write_bytes(b"RIFF fake wav")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        return subprocess.CompletedProcess(
            cmd, self.returncode, stdout="", stderr="Invalid data found when processing input"
        )


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch) -> FakeHTTP:
    http = FakeHTTP()
    monkeypatch.setattr("speakeval.acquire.media.requests.get", http.get)
    return http


@pytest.fixture
def fake_ffmpeg(monkeypatch: pytest.MonkeyPatch) -> FakeFFmpeg:
    ffmpeg = FakeFFmpeg()
    monkeypatch.setattr("speakeval.extract.audio.subprocess.run", ffmpeg)
    return ffmpeg


@pytest.fixture
def local_video(tmp_path: Path) -> Path:
    """Create a fake local video file."""
    video = tmp_path / "uploads" / "answer.mp4"
    video.parent.mkdir(parents=True)
    video.write_bytes(b"local video bytes")
    return video


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """Create an empty SQLite database with the schema."""
    url = f"sqlite:///{tmp_path / 'speakeval.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    engine.dispose()
    return url


def _seed_responses(url: str, rows: list[dict[str, Any]]) -> None:
    engine = create_engine(url)
    with Session(engine) as session:
        if session.get(Question, "q_001") is None:
            session.add(Question(id="q_001", text="Describe your favourite place to visit."))
        for row in rows:
            session.add(
                Response(
                    id=row["id"],
                    candidate_test_id=row.get("candidate_test_id", "test_001"),
                    question_id=row.get("question_id", "q_001"),
                    video_url=row.get("video_url"),
                    transcription=row.get("transcription"),
                    ai_score=row.get("ai_score"),
                    ai_feedback=row.get("ai_feedback"),
                    cefr_level=row["cefr_level"].value if row.get("cefr_level") else None,
                )
            )
            session.flush()
        session.commit()
    engine.dispose()


def _load_response(url: str, response_id: str) -> Response:
    engine = create_engine(url)
    with Session(engine, expire_on_commit=False) as session:
        response = session.get(Response, response_id)
        session.expunge_all()
    engine.dispose()
    return response


@pytest.fixture
def seed(db_url: str):
    """Insert a question and the given responses into the test database."""

    def _seed(rows: list[dict[str, Any]]) -> None:
        _seed_responses(db_url, rows)

    return _seed


@pytest.fixture
def fetch_row(db_url: str):
    """Load a raw Response row, bypassing the store."""

    def _fetch(response_id: str) -> Response:
        return _load_response(db_url, response_id)

    return _fetch


@pytest.fixture
def eval_config(db_url: str, work_dir: Path) -> EvalConfig:
    """Config using deterministic transcriber and evaluator backends."""
    return EvalConfig(
        database_url=db_url,
        work_dir=work_dir,
        transcriber_backend="static",
        static_transcript=MOCK_TRANSCRIPT,
        evaluator_backend="static",
        static_score=85,
        static_feedback=MOCK_FEEDBACK,
        static_level=CEFRLevel.B2,
    )


@pytest.fixture
def sample_config_dict() -> dict:
    """Return a sample configuration dictionary."""
    return {
        "database_url": "sqlite:///speakeval.db",
        "ffmpeg_path": "ffmpeg",
        "privacy_mode": "local",
        "transcriber_backend": "whisper",
        "whisper_backend": "faster",
        "whisper_model": "medium",
        "whisper_language": "en",
        "evaluator_backend": "llm",
        "llm_backend": "ollama",
        "llm_model": "llama3.1:8b-instruct-q4_K_M",
        "llm_temperature": 0.3,
    }


@pytest.fixture
def sample_assessment() -> dict:
    """Return a five-category assessment as produced by the evaluation prompt."""
    return {
        "categoryLevels": {
            "fluency_coherence": {"level": "B2", "score": 4},
            "vocabulary_range": {"level": "B2", "score": 4},
            "grammar_accuracy": {"level": "B1", "score": 3},
            "discourse_management": {"level": "B2", "score": 4},
            "opinions_ideas": {"level": "B2", "score": 4},
        },
        "totalScore": 19,
        "mappedCEFR": "B2",
        "strengths": ["Good range of vocabulary", "Clear structure"],
        "weaknesses": ["Minor grammar errors"],
        "justification": "Mostly upper-intermediate features with minor grammatical errors.",
    }
