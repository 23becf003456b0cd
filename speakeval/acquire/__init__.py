"""
speakeval.acquire - Fetching candidate videos.

Pipeline Stage 1: Produce a local copy of a response's video, either by
streaming it from an HTTP(S) URL or copying it from a local path.
"""

from __future__ import annotations
