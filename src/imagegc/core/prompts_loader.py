"""
Load prompt templates from the bundled prompts.yaml file.

Prompts are defined in src/imagegc/prompts.yaml and loaded once per process.
Add new prompt keys there and access them via get_prompt() or specific getters.
"""

import importlib.resources
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from imagegc.utils.exceptions import ConfigurationError

# Module-level cache for parsed prompts
_prompts_data: dict[str, Any] | None = None

_USER_TEMPLATE_PLACEHOLDERS = ("{basic_description}", "{tags}", "{target_length}")


class EnhancementPrompt(BaseModel):
    """Schema for the description enhancement prompts."""

    system: str = Field(..., min_length=1, description="System role message")
    user_template: str = Field(
        ...,
        min_length=1,
        description="User message; must contain {basic_description}, {tags}, {target_length}",
    )


class PromptsSchema(BaseModel):
    """Schema for prompts.yaml configuration file."""

    model_config = {"extra": "allow"}  # Allow additional keys for future expansion

    enhancement: EnhancementPrompt


def _load_prompts() -> dict[str, Any]:
    """Load and parse prompts.yaml from the package. Cached after first call.

    Returns:
        Dictionary of prompt data.

    Raises:
        ConfigurationError: If YAML is missing, malformed, or fails validation.
    """
    global _prompts_data
    if _prompts_data is not None:
        return _prompts_data

    try:
        with (
            importlib.resources.files("imagegc").joinpath("prompts.yaml").open(encoding="utf-8") as f
        ):
            raw = f.read()
    except FileNotFoundError as e:
        raise ConfigurationError(
            "prompts.yaml not found. This file is required and should be bundled with the package."
        ) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse prompts.yaml: {e}. Check YAML syntax and formatting."
        ) from e

    if data is None:
        raise ConfigurationError(
            "prompts.yaml is empty. Expected configuration with 'enhancement' section."
        )

    try:
        PromptsSchema(**data)
    except ValidationError as e:
        errors = "\n".join([f"  - {err['loc'][0]}: {err['msg']}" for err in e.errors()])
        raise ConfigurationError(
            f"Invalid prompts.yaml structure:\n{errors}\n"
            "Expected 'enhancement' section with 'system' and 'user_template' keys."
        ) from e

    _prompts_data = data
    return _prompts_data


def get_prompt(key: str, subkey: str | None = None) -> str | None:
    """
    Get a prompt string from prompts.yaml.

    Args:
        key: Top-level key (e.g. "enhancement").
        subkey: Optional subkey (e.g. "system") for nested value.

    Returns:
        The prompt string, or None if not found.
    """
    data = _load_prompts()
    value = data.get(key)
    if value is None:
        return None
    if subkey is not None:
        value = value.get(subkey) if isinstance(value, dict) else None
    return value if isinstance(value, str) else None


def get_enhancement_system_prompt() -> str:
    """Return the system role message for description enhancement."""
    prompt = get_prompt("enhancement", "system")
    if not prompt:
        raise ConfigurationError("enhancement.system not found in prompts.yaml. This key is required.")
    return prompt


def get_enhancement_user_template() -> str:
    """
    Return the user message template for description enhancement.

    Must contain {basic_description}, {tags} and {target_length} placeholders.

    Raises:
        ConfigurationError: If template is missing or a placeholder is absent.
    """
    template = get_prompt("enhancement", "user_template")
    if not template:
        raise ConfigurationError(
            "enhancement.user_template not found in prompts.yaml. This key is required."
        )
    missing = [p for p in _USER_TEMPLATE_PLACEHOLDERS if p not in template]
    if missing:
        raise ConfigurationError(
            f"enhancement.user_template must contain {', '.join(missing)} placeholder(s)."
        )
    return template
