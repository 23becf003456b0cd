"""
speakeval.utils - Shared formatting helpers for console output.
"""

from __future__ import annotations

from pathlib import Path


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS or MM:SS."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(path: Path) -> str:
    """Format file size in human-readable format."""
    if not path.exists():
        return "-"
    size = float(path.stat().st_size)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def score_style(score: float | None) -> str:
    """Get rich style for a 0-100 evaluation score.

    Returns:
        "green" (>= 70), "yellow" (>= 40), "red" otherwise, "dim" if unscored
    """
    if score is None:
        return "dim"
    if score >= 70:
        return "green"
    elif score >= 40:
        return "yellow"
    return "red"
