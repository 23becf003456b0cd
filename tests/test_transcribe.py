"""Tests for speakeval.transcribe.engine module."""

from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from speakeval.config import EvalConfig
from speakeval.exceptions import DependencyError, PrivacyError, TranscriptionError
from speakeval.transcribe.engine import (
    APITranscriber,
    StaticTranscriber,
    WhisperTranscriber,
    create_transcriber_from_config,
    join_segments,
)


class TestJoinSegments:
    def test_strips_and_joins(self) -> None:
        assert join_segments([" Hello there.", " How are you? "]) == "Hello there. How are you?"

    def test_drops_empty(self) -> None:
        assert join_segments(["", "  ", "Hi"]) == "Hi"

    def test_empty(self) -> None:
        assert join_segments([]) == ""


class TestWhisperTranscriber:
    def test_unknown_backend_raises(self, tmp_path: Path) -> None:
        transcriber = WhisperTranscriber(backend="cpp")
        with pytest.raises(TranscriptionError):
            transcriber.transcribe(tmp_path / "a.wav")

    def test_missing_package_raises_dependency_error(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setitem(sys.modules, "faster_whisper", None)
        with pytest.raises(DependencyError) as exc_info:
            WhisperTranscriber(backend="faster").transcribe(tmp_path / "a.wav")
        assert "speakeval[faster]" in exc_info.value.install_hint

    def test_faster_backend_joins_segments(self, tmp_path: Path, monkeypatch) -> None:
        model = MagicMock()
        model.transcribe.return_value = (
            iter([SimpleNamespace(text=" I like"), SimpleNamespace(text=" the sea.")]),
            SimpleNamespace(language="en"),
        )
        fake_module = SimpleNamespace(WhisperModel=MagicMock(return_value=model))
        monkeypatch.setitem(sys.modules, "faster_whisper", fake_module)

        transcriber = WhisperTranscriber(model="small", language="en", backend="faster")
        text = transcriber.transcribe(tmp_path / "a.wav")

        assert text == "I like the sea."
        model.transcribe.assert_called_once_with(str(tmp_path / "a.wav"), language="en")

    def test_backend_exception_wrapped(self, tmp_path: Path, monkeypatch) -> None:
        model = MagicMock()
        model.transcribe.side_effect = RuntimeError("CUDA out of memory")
        fake_module = SimpleNamespace(WhisperModel=MagicMock(return_value=model))
        monkeypatch.setitem(sys.modules, "faster_whisper", fake_module)

        with pytest.raises(TranscriptionError, match="CUDA"):
            WhisperTranscriber(backend="faster").transcribe(tmp_path / "a.wav")

    @pytest.mark.slow
    def test_transcribe_real_audio(self, tmp_path: Path) -> None:
        """Test transcription with real audio file."""
        pytest.skip("Requires real audio file - run manually")


class TestAPITranscriber:
    def test_local_privacy_mode_blocks(self, tmp_path: Path) -> None:
        transcriber = APITranscriber(privacy_mode="local")
        with pytest.raises(PrivacyError):
            transcriber.transcribe(tmp_path / "a.wav")

    def test_hybrid_calls_litellm(self, tmp_path: Path, monkeypatch) -> None:
        audio = tmp_path / "a.wav"
        audio.write_bytes(b"RIFF")
        fake_litellm = SimpleNamespace(
            telemetry=True,
            transcription=MagicMock(return_value=SimpleNamespace(text=" Hello. ")),
        )
        monkeypatch.setitem(sys.modules, "litellm", fake_litellm)

        text = APITranscriber(model="whisper-1", privacy_mode="hybrid").transcribe(audio)

        assert text == "Hello."
        assert fake_litellm.transcription.call_args.kwargs["model"] == "whisper-1"


class TestCreateTranscriberFromConfig:
    def test_static(self) -> None:
        config = EvalConfig(transcriber_backend="static", static_transcript="fixed")
        transcriber = create_transcriber_from_config(config)
        assert isinstance(transcriber, StaticTranscriber)
        assert transcriber.transcribe(Path("any.wav")) == "fixed"

    def test_whisper_default(self) -> None:
        transcriber = create_transcriber_from_config(EvalConfig())
        assert isinstance(transcriber, WhisperTranscriber)
        assert transcriber.backend == "faster"

    def test_api_in_local_mode_fails_fast(self) -> None:
        with pytest.raises(PrivacyError):
            create_transcriber_from_config(EvalConfig(transcriber_backend="api"))
