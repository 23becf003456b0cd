"""
speakeval.llm - LLM-backed transcript evaluation.

Pipeline Stage 4: Score a transcript against its question prompt and
return a 0-100 score, written feedback, and a CEFR level.
"""

from __future__ import annotations
