"""
speakeval.llm.templates - Prompt template loading and rendering.

Uses Jinja2 to load and render prompt templates from the packaged
prompts/ directory or a configured override directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template

DEFAULT_PROMPTS_DIR = Path(__file__).parent.parent / "prompts"
EVALUATE_TEMPLATE = "evaluate.txt"


class PromptTemplateManager:
    """Manages loading and rendering of prompt templates."""

    def __init__(self, prompts_dir: Path | None = None) -> None:
        self.prompts_dir = prompts_dir or DEFAULT_PROMPTS_DIR
        search_path = [str(self.prompts_dir)]
        if self.prompts_dir != DEFAULT_PROMPTS_DIR:
            search_path.append(str(DEFAULT_PROMPTS_DIR))
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._cache: dict[str, Template] = {}

    def get_template(self, name: str) -> Template:
        """Load a template by name, falling back to the packaged default.

        Raises:
            FileNotFoundError: If template doesn't exist
        """
        if name not in self._cache:
            candidates = [self.prompts_dir / name, DEFAULT_PROMPTS_DIR / name]
            if not any(path.exists() for path in candidates):
                raise FileNotFoundError(f"Template not found: {self.prompts_dir / name}")
            self._cache[name] = self.env.get_template(name)
        return self._cache[name]

    def render(self, template_name: str, variables: dict[str, Any]) -> str:
        """Render a template with variables."""
        template = self.get_template(template_name)
        return template.render(**variables)


def format_transcript_for_prompt(transcript: str) -> str:
    """Normalize whitespace and escape double quotes for a quoted prompt block."""
    text = " ".join(transcript.split())
    return text.replace('"', '\\"')
