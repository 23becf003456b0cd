"""
speakeval.transcribe.engine - Transcriber backends.

Local Whisper (mlx-whisper or faster-whisper), cloud speech-to-text via
litellm, and a fixed-text backend for dry runs. All backends satisfy the
Transcriber protocol so the pipeline never depends on a provider.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from speakeval.exceptions import DependencyError, PrivacyError, TranscriptionError


class Transcriber(Protocol):
    """Minimal speech-to-text interface."""

    def transcribe(self, audio_path: Path) -> str: ...


class WhisperTranscriber:
    """Transcribe locally with a Whisper model."""

    def __init__(
        self,
        model: str = "medium",
        language: str | None = None,
        backend: str = "faster",
    ) -> None:
        self.model = model
        self.language = language
        self.backend = backend
        self._faster_model: Any = None

    def transcribe(self, audio_path: Path) -> str:
        """Transcribe an audio file.

        Raises:
            TranscriptionError: If the backend fails or is unknown
            DependencyError: If the backend package is not installed
        """
        try:
            if self.backend == "mlx":
                segments = self._transcribe_mlx(audio_path)
            elif self.backend == "faster":
                segments = self._transcribe_faster(audio_path)
            else:
                raise TranscriptionError(f"Unknown backend: {self.backend}")
        except (TranscriptionError, DependencyError):
            raise
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        return join_segments(segments)

    def _transcribe_mlx(self, audio_path: Path) -> list[str]:
        """Transcribe using mlx-whisper."""
        try:
            import mlx_whisper
        except ImportError as e:
            raise DependencyError(
                "mlx-whisper", "not installed", "Install with: pip install speakeval[mlx]"
            ) from e

        kwargs: dict[str, Any] = {"path_or_hf_repo": f"mlx-community/whisper-{self.model}-mlx"}
        if self.language:
            kwargs["language"] = self.language

        result = mlx_whisper.transcribe(str(audio_path), **kwargs)
        segments = result.get("segments")
        if segments:
            return [seg.get("text", "") for seg in segments]
        return [result.get("text", "")]

    def _transcribe_faster(self, audio_path: Path) -> list[str]:
        """Transcribe using faster-whisper."""
        try:
            from faster_whisper import WhisperModel
        except ImportError as e:
            raise DependencyError(
                "faster-whisper", "not installed", "Install with: pip install speakeval[faster]"
            ) from e

        if self._faster_model is None:
            self._faster_model = WhisperModel(self.model, device="auto", compute_type="auto")

        kwargs: dict[str, Any] = {}
        if self.language:
            kwargs["language"] = self.language

        segments, _info = self._faster_model.transcribe(str(audio_path), **kwargs)
        return [segment.text for segment in segments]


class APITranscriber:
    """Transcribe with a hosted speech-to-text model through litellm."""

    def __init__(
        self,
        model: str = "whisper-1",
        language: str | None = None,
        privacy_mode: str = "local",
    ) -> None:
        self.model = model
        self.language = language
        self.privacy_mode = privacy_mode

    def check_privacy(self) -> None:
        if self.privacy_mode == "local":
            raise PrivacyError(
                "Cloud transcription not allowed in local privacy mode. "
                "Set privacy_mode: hybrid in speakeval.yaml to enable cloud APIs."
            )

    def transcribe(self, audio_path: Path) -> str:
        self.check_privacy()

        try:
            import litellm
        except ImportError as e:
            raise DependencyError("litellm", "not installed", "Install with: pip install litellm") from e

        litellm.telemetry = False

        kwargs: dict[str, Any] = {"model": self.model}
        if self.language:
            kwargs["language"] = self.language

        try:
            with open(audio_path, "rb") as audio_file:
                response = litellm.transcription(file=audio_file, **kwargs)
        except Exception as e:
            raise TranscriptionError(f"Transcription request failed: {e}") from e

        text = getattr(response, "text", None)
        if text is None and isinstance(response, dict):
            text = response.get("text")
        if text is None:
            raise TranscriptionError("No text in transcription response")
        return text.strip()


class StaticTranscriber:
    """Return the same transcript for every file."""

    def __init__(self, text: str) -> None:
        self.text = text

    def transcribe(self, audio_path: Path) -> str:
        return self.text


def join_segments(segments: list[str]) -> str:
    """Join segment texts into a single transcript."""
    return " ".join(text.strip() for text in segments if text and text.strip())


def create_transcriber_from_config(config: Any) -> Transcriber:
    """Create a transcriber from EvalConfig.

    Args:
        config: EvalConfig instance

    Returns:
        Configured Transcriber
    """
    if config.transcriber_backend == "static":
        return StaticTranscriber(config.static_transcript)
    if config.transcriber_backend == "api":
        transcriber = APITranscriber(
            model=config.stt_model,
            language=config.whisper_language,
            privacy_mode=config.privacy_mode,
        )
        transcriber.check_privacy()
        return transcriber
    return WhisperTranscriber(
        model=config.whisper_model,
        language=config.whisper_language,
        backend=config.whisper_backend,
    )
