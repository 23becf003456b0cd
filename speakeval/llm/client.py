"""
speakeval.llm.client - Chat completion access through litellm.

Routes the configured backend (Ollama, LM Studio, OpenAI, Claude) to a
litellm model string, refuses cloud backends in local privacy mode, and
retries transient failures a bounded number of times.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Any

from speakeval.exceptions import LLMError, LLMPrivacyError, LLMResponseError
from speakeval.logging import logger

SYSTEM_PROMPT = "You are an expert English language assessor specializing in CEFR evaluation."

# backend -> (litellm model prefix, api base)
BACKEND_ROUTES: dict[str, tuple[str, str | None]] = {
    "ollama": ("ollama/", "http://localhost:11434"),
    "lmstudio": ("openai/", "http://localhost:1234/v1"),
    "claude": ("anthropic/", None),
    "openai": ("", None),
}

CLOUD_BACKENDS = frozenset({"claude", "openai"})

_USAGE_FIELDS = ("prompt_tokens", "completion_tokens", "total_tokens")


def _reply_text(response: Any) -> str:
    """Pull the assistant text out of a litellm completion response."""
    choices = getattr(response, "choices", None)
    if not choices:
        raise LLMResponseError("LLM returned no choices")

    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if content is None:
        raise LLMResponseError("LLM reply has no message content")
    return content


class LLMClient:
    """Thin litellm wrapper used by the transcript evaluator."""

    def __init__(
        self,
        backend: str = "ollama",
        model: str = "llama3.1:8b-instruct-q4_K_M",
        privacy_mode: str = "local",
        timeout: int = 300,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ) -> None:
        self.backend = backend
        self.model = model
        self.privacy_mode = privacy_mode
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._usage: Counter[str] = Counter()

    @property
    def model_string(self) -> str:
        prefix, _ = BACKEND_ROUTES.get(self.backend, ("", None))
        return f"{prefix}{self.model}"

    @property
    def api_base(self) -> str | None:
        return BACKEND_ROUTES.get(self.backend, ("", None))[1]

    def check_privacy(self) -> None:
        if self.privacy_mode == "local" and self.backend in CLOUD_BACKENDS:
            raise LLMPrivacyError(
                f"LLM backend '{self.backend}' sends transcripts to a cloud API and is "
                f"refused in local privacy mode. Set privacy_mode: hybrid in speakeval.yaml."
            )

    def _record_usage(self, response: Any) -> None:
        usage = getattr(response, "usage", None)
        if usage is None:
            return
        for field in _USAGE_FIELDS:
            self._usage[field] += getattr(usage, field, 0) or 0

    def complete(
        self,
        prompt: str,
        system: str | None = SYSTEM_PROMPT,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> str:
        """Send a prompt and return the reply text.

        Args:
            prompt: User message
            system: System message, omitted when None
            max_tokens: Reply length limit
            temperature: Sampling temperature

        Returns:
            Raw reply text

        Raises:
            LLMPrivacyError: If a cloud backend is used in local privacy mode
            LLMResponseError: If the reply carries no text
            LLMError: If every attempt fails
        """
        self.check_privacy()

        try:
            import litellm
        except ImportError as e:
            raise LLMError("litellm not installed. Install with: pip install litellm") from e

        litellm.telemetry = False

        messages = [{"role": "user", "content": prompt}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        request: dict[str, Any] = {
            "model": self.model_string,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "timeout": self.timeout,
        }
        if self.api_base:
            request["api_base"] = self.api_base

        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = litellm.completion(**request)
            except Exception as e:
                last_error = e
                logger.warning(
                    "LLM request to %s failed (attempt %d/%d): %s",
                    self.model_string,
                    attempt,
                    self.max_retries,
                    e,
                )
                if attempt < self.max_retries:
                    delay = self.retry_delay
                    if "rate limit" in str(e).lower():
                        delay *= 2
                    time.sleep(delay)
                continue

            self._record_usage(response)
            return _reply_text(response)

        raise LLMError(
            f"LLM request failed after {self.max_retries} attempt(s): {last_error}"
        ) from last_error

    def get_token_usage(self) -> dict[str, int]:
        """Cumulative token counts across all completions."""
        return {field: self._usage[field] for field in _USAGE_FIELDS}

    def reset_token_usage(self) -> None:
        self._usage.clear()


def create_client_from_config(config: Any) -> LLMClient:
    """Build an LLMClient from EvalConfig."""
    return LLMClient(
        backend=config.llm_backend,
        model=config.llm_model,
        privacy_mode=config.privacy_mode,
    )
