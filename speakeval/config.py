"""
speakeval.config - YAML config loading, CLI overrides, validation.

Handles loading speakeval.yaml, applying command-line overrides, and
validating all parameters.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from speakeval.exceptions import ConfigError
from speakeval.levels import CEFRLevel

CONFIG_FILENAME = "speakeval.yaml"


class EvalConfig(BaseModel):
    """Resolved configuration for a batch evaluation run."""

    database_url: str = "sqlite:///speakeval.db"
    work_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    ffmpeg_path: str = "ffmpeg"
    download_chunk_size: int = Field(default=64 * 1024, gt=0)

    privacy_mode: str = "local"

    transcriber_backend: str = "whisper"
    whisper_backend: str = "faster"
    whisper_model: str = "medium"
    whisper_language: str | None = "en"
    stt_model: str = "whisper-1"
    static_transcript: str = ""

    evaluator_backend: str = "llm"
    static_score: float = Field(default=0.0, ge=0.0, le=100.0)
    static_feedback: str = "Not evaluated."
    static_level: CEFRLevel = CEFRLevel.A1
    llm_backend: str = "ollama"
    llm_model: str = "llama3.1:8b-instruct-q4_K_M"
    llm_temperature: float = Field(default=0.3, ge=0.0, le=2.0)

    prompts_dir: Path | None = None

    @field_validator("privacy_mode")
    @classmethod
    def validate_privacy_mode(cls, v: str) -> str:
        valid = {"local", "hybrid"}
        if v not in valid:
            raise ValueError(f"privacy_mode must be one of: {valid}")
        return v

    @field_validator("transcriber_backend")
    @classmethod
    def validate_transcriber_backend(cls, v: str) -> str:
        valid = {"whisper", "api", "static"}
        if v not in valid:
            raise ValueError(f"transcriber_backend must be one of: {valid}")
        return v

    @field_validator("whisper_backend")
    @classmethod
    def validate_whisper_backend(cls, v: str) -> str:
        valid = {"mlx", "faster"}
        if v not in valid:
            raise ValueError(f"whisper_backend must be one of: {valid}")
        return v

    @field_validator("evaluator_backend")
    @classmethod
    def validate_evaluator_backend(cls, v: str) -> str:
        valid = {"llm", "static"}
        if v not in valid:
            raise ValueError(f"evaluator_backend must be one of: {valid}")
        return v

    @field_validator("llm_backend")
    @classmethod
    def validate_llm_backend(cls, v: str) -> str:
        valid = {"ollama", "lmstudio", "claude", "openai"}
        if v not in valid:
            raise ValueError(f"llm_backend must be one of: {valid}")
        return v


def find_config_file(start: Path | None = None) -> Path | None:
    """Find speakeval.yaml in the given directory or any parent."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def merge_config(file_config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge file config with overrides. Non-None overrides take precedence."""
    merged = file_config.copy()
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> EvalConfig:
    """Load and validate configuration.

    Args:
        config_path: Explicit config file; searched from the cwd if None
        overrides: Values that replace file settings (None values ignored)

    Returns:
        Validated EvalConfig

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid
    """
    raw_config: dict[str, Any] = {}

    if config_path is not None and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    path = config_path or find_config_file()
    if path is not None:
        try:
            with open(path) as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

    merged = merge_config(raw_config, overrides or {})

    try:
        return EvalConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def create_default_config(database_url: str | None = None) -> dict[str, Any]:
    """Create a default config for a new installation."""
    defaults = EvalConfig().model_dump(mode="json", exclude={"work_dir", "prompts_dir"})
    if database_url:
        defaults["database_url"] = database_url
    return defaults
