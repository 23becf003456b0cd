"""
speakeval.extract - Audio extraction from video files.

Pipeline Stage 2: Demux the candidate's video into a 16kHz mono 16-bit
PCM WAV, the format expected by transcription.
"""

from __future__ import annotations
