"""Tests for speakeval.llm.evaluator module."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from speakeval.config import EvalConfig
from speakeval.exceptions import LLMPrivacyError, LLMResponseError
from speakeval.levels import CEFRLevel
from speakeval.llm.evaluator import LLMEvaluator, StaticEvaluator, create_evaluator_from_config
from speakeval.llm.templates import PromptTemplateManager


def _make_mock_client(response_data: dict[str, Any] | str) -> MagicMock:
    """Create a mock LLM client that returns the given response data."""
    client = MagicMock()
    client.model = "test-model"
    if isinstance(response_data, str):
        client.complete.return_value = response_data
    else:
        client.complete.return_value = json.dumps(response_data)
    return client


class TestLLMEvaluator:
    def test_evaluate_normalizes_assessment(self, sample_assessment: dict) -> None:
        client = _make_mock_client(sample_assessment)
        evaluator = LLMEvaluator(client, PromptTemplateManager())

        result = evaluator.evaluate("I enjoy visiting the mountains.", "Describe a place.")

        assert result.level == CEFRLevel.B2
        assert result.score == 63.0
        client.complete.assert_called_once()

    def test_prompt_contains_question_and_transcript(self, sample_assessment: dict) -> None:
        client = _make_mock_client(sample_assessment)
        evaluator = LLMEvaluator(client, PromptTemplateManager(), temperature=0.1)

        evaluator.evaluate("I enjoy visiting the mountains.", "Describe a place.")

        prompt = client.complete.call_args.args[0]
        assert "I enjoy visiting the mountains." in prompt
        assert "Describe a place." in prompt
        assert client.complete.call_args.kwargs["temperature"] == 0.1

    def test_malformed_reply_raises(self) -> None:
        client = _make_mock_client("Sorry, I can't do that.")
        evaluator = LLMEvaluator(client, PromptTemplateManager())

        with pytest.raises(LLMResponseError):
            evaluator.evaluate("text", "question")


class TestStaticEvaluator:
    def test_returns_fixed_result(self) -> None:
        evaluator = StaticEvaluator(score=85, feedback="Fine.", level=CEFRLevel.B2)
        first = evaluator.evaluate("a", "q")
        second = evaluator.evaluate("b", "q")
        assert first == second
        assert first.score == 85.0
        assert first.level == CEFRLevel.B2


class TestCreateEvaluatorFromConfig:
    def test_static(self) -> None:
        config = EvalConfig(evaluator_backend="static", static_score=70, static_level="B1")
        evaluator = create_evaluator_from_config(config)
        assert isinstance(evaluator, StaticEvaluator)
        assert evaluator.evaluate("t", "q").level == CEFRLevel.B1

    def test_llm(self) -> None:
        evaluator = create_evaluator_from_config(EvalConfig())
        assert isinstance(evaluator, LLMEvaluator)
        assert evaluator.client.backend == "ollama"

    def test_cloud_backend_in_local_mode_fails_fast(self) -> None:
        with pytest.raises(LLMPrivacyError):
            create_evaluator_from_config(EvalConfig(llm_backend="openai"))
