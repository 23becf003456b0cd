"""
speakeval.llm.parsing - LLM output JSON parsing with validation.

Handles parsing LLM responses into structured JSON with error recovery,
and normalizing the CEFR assessment into an EvaluationResult.
"""

from __future__ import annotations

import json
import re
from typing import Any

from speakeval.exceptions import LLMResponseError
from speakeval.levels import (
    CATEGORY_COUNT,
    LEVEL_POINTS,
    level_from_total,
    parse_level,
    score_from_total,
)
from speakeval.models import EvaluationResult


def extract_json_from_response(response: str) -> str:
    """Extract JSON from LLM response.

    Raises:
        LLMResponseError: If no JSON found
    """
    text = response.strip()

    # Remove markdown code blocks
    if "```" in text:
        text = re.sub(r"```json\s*", "", text, flags=re.IGNORECASE)
        text = re.sub(r"```\s*", "", text)
        text = text.strip()

    json_match = re.search(r"\{[\s\S]*\}", text)
    if json_match:
        return json_match.group(0)

    raise LLMResponseError("No JSON object found in response")


def repair_json(text: str) -> str:
    """Attempt to repair common JSON issues."""
    # Remove trailing commas before } or ]
    text = re.sub(r",(\s*[}\]])", r"\1", text)

    open_braces = text.count("{")
    close_braces = text.count("}")
    open_brackets = text.count("[")
    close_brackets = text.count("]")

    if open_brackets > close_brackets:
        text += "]" * (open_brackets - close_brackets)
    if open_braces > close_braces:
        text += "}" * (open_braces - close_braces)

    return text


def parse_llm_json(response: str) -> dict[str, Any]:
    """Parse JSON from LLM response with error recovery.

    Handles common issues:
    - Markdown code blocks (```json ... ```)
    - Trailing commas
    - Text before/after JSON

    Raises:
        LLMResponseError: If parsing fails
    """
    text = extract_json_from_response(response)

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = json.loads(repair_json(text))
        except json.JSONDecodeError as e:
            raise LLMResponseError(
                f"Failed to parse LLM response as JSON after repair attempts.\n\n"
                f"Response (first 500 chars):\n{text[:500]}"
            ) from e

    if not isinstance(data, dict):
        raise LLMResponseError("LLM response JSON is not an object")
    return data


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _category_total(categories: Any) -> float | None:
    """Sum category points, deriving them from levels where scores are absent."""
    if not isinstance(categories, dict) or len(categories) != CATEGORY_COUNT:
        return None

    total = 0.0
    for entry in categories.values():
        if not isinstance(entry, dict):
            return None
        points = _as_number(entry.get("score"))
        if points is None:
            level = parse_level(entry.get("level"))
            if level is None:
                return None
            points = LEVEL_POINTS[level]
        total += points
    return total


def _as_items(value: Any) -> list[str]:
    """Normalize a strengths/weaknesses value to a list of non-empty strings."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item and str(item).strip()]


def _format_feedback(data: dict[str, Any]) -> str:
    parts = []
    summary = data.get("feedback") or data.get("justification")
    if summary:
        parts.append(str(summary).strip())

    strengths = _as_items(data.get("strengths"))
    weaknesses = _as_items(data.get("weaknesses"))
    if strengths:
        parts.append("Strengths: " + "; ".join(strengths))
    if weaknesses:
        parts.append("Weaknesses: " + "; ".join(weaknesses))

    return "\n".join(parts)


def validate_evaluation_response(data: dict[str, Any]) -> EvaluationResult:
    """Validate and normalize a CEFR assessment.

    Accepts either a direct ``score``/``level``/``feedback`` object or the
    five-category ``totalScore``/``mappedCEFR``/``justification`` form.

    Raises:
        LLMResponseError: If score, level, or feedback cannot be determined
    """
    total = _as_number(data.get("totalScore"))
    if total is None:
        total = _category_total(data.get("categoryLevels"))

    score = _as_number(data.get("score"))
    if score is None:
        if total is None:
            raise LLMResponseError("Evaluation response has neither 'score' nor 'totalScore'")
        score = score_from_total(total)
    score = min(100.0, max(0.0, score))

    level = parse_level(data.get("level") or data.get("mappedCEFR") or data.get("cefrLevel"))
    if level is None:
        if total is None:
            raise LLMResponseError("Evaluation response missing a valid CEFR level")
        level = level_from_total(total)

    feedback = _format_feedback(data)
    if not feedback:
        raise LLMResponseError("Evaluation response missing feedback")

    return EvaluationResult(score=score, feedback=feedback, level=level)
