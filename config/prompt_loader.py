"""Prompt loading utility for reading default prompt templates from files."""

import logging
import re
from enum import Enum
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

# Base directory for prompts
_PROMPTS_DIR = Path(__file__).parent / "prompts"


class PromptName(str, Enum):
    """Enumeration of all shipped prompt names for type safety."""

    # Narrative
    STORY_SYSTEM = "story_system"
    STORY_USER = "story_user"

    # Structure decomposition
    SHOT_SYSTEM = "shot_system"
    SCENE_BREAKDOWN = "scene_breakdown"
    SHOT_BREAKDOWN = "shot_breakdown"


def _extract_template_vars(template: str) -> set[str]:
    """Extract variable names from template string.

    Args:
        template: Template string with {var_name} placeholders.

    Returns:
        Set of variable names found in template.
    """
    return set(re.findall(r"\{(\w+)\}", template))


def _substitute_template(template: str, **vars: str) -> str:
    """Substitute variables in template string.

    Args:
        template: Template string with {var_name} placeholders.
        **vars: Variables to substitute.

    Returns:
        Template with variables substituted.

    Raises:
        KeyError: If a template variable is missing from vars.
    """
    if not vars:
        return template

    try:
        return template.format(**vars)
    except KeyError as e:
        required = _extract_template_vars(template)
        raise KeyError(
            f"Missing template variable: {e}. "
            f"Required variables: {sorted(required)}"
        ) from e


@lru_cache
def _read_prompt(prompt_name: str) -> str:
    prompt_path = _PROMPTS_DIR / f"{prompt_name}.txt"

    if not prompt_path.exists():
        raise FileNotFoundError(
            f"Prompt file not found: {prompt_path}. "
            f"Expected location: {_PROMPTS_DIR}/"
        )

    try:
        content = prompt_path.read_text(encoding="utf-8")
    except IOError as e:
        raise IOError(f"Failed to read prompt file {prompt_path}: {e}") from e

    logger.debug("Loaded prompt from %s (%d chars)", prompt_path, len(content))
    return content.strip()


def load_prompt(prompt_name: str | PromptName, **template_vars: str) -> str:
    """Load prompt text from a file with optional template variable substitution.

    Args:
        prompt_name: Name of the prompt file (without .txt extension) or PromptName enum.
        **template_vars: Variables to substitute in the template using {var_name} syntax.

    Returns:
        The prompt text content with variables substituted.

    Raises:
        FileNotFoundError: If the prompt file does not exist.
        IOError: If the file cannot be read.
        KeyError: If a template variable is missing.
    """
    if isinstance(prompt_name, PromptName):
        prompt_name = prompt_name.value

    return _substitute_template(_read_prompt(prompt_name), **template_vars)


def prompt_or_default(value: str | None, default: str | PromptName) -> str:
    """Return a template-provided prompt, falling back to a shipped prompt file.

    Args:
        value: Prompt text from the story template, possibly empty.
        default: Prompt file to use when value is empty.

    Returns:
        The prompt text.
    """
    if value and value.strip():
        return value
    return load_prompt(default)
