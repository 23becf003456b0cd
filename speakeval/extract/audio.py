"""
speakeval.extract.audio - FFmpeg audio extraction.

Produces a 16kHz mono 16-bit PCM WAV from a video file.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from speakeval.exceptions import ExtractionError

SAMPLE_RATE = 16000
CHANNELS = 1
CODEC = "pcm_s16le"


def build_ffmpeg_command(video_path: Path, audio_path: Path, ffmpeg: str = "ffmpeg") -> list[str]:
    """Build the FFmpeg argument list for transcription audio."""
    return [
        ffmpeg,
        "-y",
        "-i",
        str(video_path),
        "-vn",
        "-acodec",
        CODEC,
        "-ar",
        str(SAMPLE_RATE),
        "-ac",
        str(CHANNELS),
        str(audio_path),
    ]


def extract_audio(video_path: Path, audio_path: Path, ffmpeg: str = "ffmpeg") -> Path:
    """Extract normalized audio from a video file using FFmpeg.

    Args:
        video_path: Path to source video file
        audio_path: Output path for the 16kHz mono WAV
        ffmpeg: FFmpeg executable

    Returns:
        audio_path

    Raises:
        ExtractionError: If FFmpeg is missing or exits non-zero
    """
    if not video_path.exists():
        raise ExtractionError(f"Video file not found: {video_path}")

    audio_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = build_ffmpeg_command(video_path, audio_path, ffmpeg)

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise ExtractionError(f"FFmpeg not found: {ffmpeg}") from e
    except OSError as e:
        raise ExtractionError(f"Audio extraction failed: {e}") from e

    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip().splitlines()
        detail = stderr[-1] if stderr else f"exit code {proc.returncode}"
        raise ExtractionError(f"FFmpeg extraction failed: {detail}")

    return audio_path
