"""
speakeval.transcribe - Speech-to-text.

Pipeline Stage 3: Turn the extracted audio into a single transcript string
through a swappable Transcriber backend.
"""

from __future__ import annotations
