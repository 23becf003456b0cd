"""
speakeval.exceptions - Custom exception classes.

All speakeval-specific exceptions inherit from SpeakevalError.
"""


class SpeakevalError(Exception):
    """Base exception for all speakeval errors."""

    pass


class ConfigError(SpeakevalError):
    """Configuration loading or validation error."""

    pass


class StoreError(SpeakevalError):
    """Database access error."""

    pass


class BatchLoadError(StoreError):
    """The responses of a test session could not be enumerated."""

    pass


class PersistenceError(StoreError):
    """Writing evaluation results back to a response failed."""

    pass


class AcquisitionError(SpeakevalError):
    """Video download or local copy error."""

    pass


class ExtractionError(SpeakevalError):
    """Audio extraction error."""

    pass


class TranscriptionError(SpeakevalError):
    """Speech-to-text error."""

    pass


class PrivacyError(SpeakevalError):
    """Attempted to use a cloud API in local privacy mode."""

    pass


class EvaluationError(SpeakevalError):
    """Transcript scoring error."""

    pass


class LLMError(EvaluationError):
    """LLM backend or prompt error."""

    pass


class LLMPrivacyError(LLMError, PrivacyError):
    """Attempted to use a cloud LLM in local privacy mode."""

    pass


class LLMResponseError(LLMError):
    """LLM returned malformed or unexpected response."""

    pass


class DependencyError(SpeakevalError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
