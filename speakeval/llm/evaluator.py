"""
speakeval.llm.evaluator - Transcript scoring backends.

Evaluators satisfy a small protocol so the pipeline can run against an
LLM or a fixed result without changes.
"""

from __future__ import annotations

from typing import Any, Protocol

from speakeval.exceptions import EvaluationError
from speakeval.levels import CATEGORY_COUNT, MAX_TOTAL, CEFRLevel
from speakeval.llm.client import LLMClient, create_client_from_config
from speakeval.llm.parsing import parse_llm_json, validate_evaluation_response
from speakeval.llm.templates import (
    EVALUATE_TEMPLATE,
    PromptTemplateManager,
    format_transcript_for_prompt,
)
from speakeval.logging import logger
from speakeval.models import EvaluationResult


class Evaluator(Protocol):
    """Minimal transcript scoring interface."""

    def evaluate(self, transcript: str, prompt: str) -> EvaluationResult: ...


class LLMEvaluator:
    """Score transcripts with an LLM using the CEFR rubric template."""

    def __init__(
        self,
        client: LLMClient,
        template_manager: PromptTemplateManager,
        temperature: float = 0.3,
    ) -> None:
        self.client = client
        self.template_manager = template_manager
        self.temperature = temperature

    def build_prompt(self, transcript: str, prompt: str) -> str:
        variables = {
            "TRANSCRIPT": format_transcript_for_prompt(transcript),
            "QUESTION": prompt.strip(),
            "CATEGORY_COUNT": CATEGORY_COUNT,
            "MAX_TOTAL": MAX_TOTAL,
        }
        try:
            return self.template_manager.render(EVALUATE_TEMPLATE, variables)
        except FileNotFoundError as e:
            raise EvaluationError(str(e)) from e

    def evaluate(self, transcript: str, prompt: str) -> EvaluationResult:
        """Score a transcript against its question.

        Raises:
            LLMError: If the LLM request fails
            LLMResponseError: If the reply cannot be normalized
        """
        rendered = self.build_prompt(transcript, prompt)
        logger.debug("Sending evaluation prompt (%d chars)", len(rendered))

        response = self.client.complete(rendered, temperature=self.temperature)
        data = parse_llm_json(response)
        return validate_evaluation_response(data)


class StaticEvaluator:
    """Return the same result for every transcript."""

    def __init__(
        self,
        score: float = 0.0,
        feedback: str = "Not evaluated.",
        level: CEFRLevel = CEFRLevel.A1,
    ) -> None:
        self.result = EvaluationResult(score=score, feedback=feedback, level=level)

    def evaluate(self, transcript: str, prompt: str) -> EvaluationResult:
        return self.result.model_copy()


def create_evaluator_from_config(config: Any) -> Evaluator:
    """Create an evaluator from EvalConfig.

    Args:
        config: EvalConfig instance

    Returns:
        Configured Evaluator
    """
    if config.evaluator_backend == "static":
        return StaticEvaluator(
            score=config.static_score,
            feedback=config.static_feedback,
            level=config.static_level,
        )

    client = create_client_from_config(config)
    client.check_privacy()
    return LLMEvaluator(
        client=client,
        template_manager=PromptTemplateManager(config.prompts_dir),
        temperature=config.llm_temperature,
    )
