"""Typed process configuration.

Settings are read once from the environment at startup and passed
explicitly to the completion client and agent loop.
"""

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, ValidationError

from harness.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_CONTEXT_WARNING_TOKENS = 100_000


class Settings(BaseModel):
    """Configuration for one harness run."""

    provider: Literal["openai", "anthropic"] = "openai"
    base_url: str | None = DEFAULT_BASE_URL
    api_key: str
    model: str

    system_prompt: str | None = None
    max_turns: int | None = None
    max_tokens: int | None = None
    max_retries: int = 0
    tool_argument_errors: Literal["abort", "report"] = "abort"
    context_warning_tokens: int | None = DEFAULT_CONTEXT_WARNING_TOKENS
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    class Config:
        frozen = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigurationError: If a required variable is missing or a value is invalid
        """
        env = os.environ if environ is None else environ

        provider = env.get("LLM_PROVIDER", "openai").strip().lower()
        if provider == "anthropic":
            key_var = "ANTHROPIC_API_KEY"
            base_url = env.get("ANTHROPIC_BASE_URL") or None
        elif provider == "openai":
            key_var = "OPENROUTER_API_KEY"
            base_url = env.get("OPENROUTER_BASE_URL") or DEFAULT_BASE_URL
        else:
            raise ConfigurationError(f"LLM_PROVIDER must be 'openai' or 'anthropic', got {provider!r}")

        api_key = env.get(key_var)
        if not api_key:
            raise ConfigurationError(f"{key_var} is not set")

        model = env.get("MODEL")
        if not model:
            raise ConfigurationError("MODEL is not set")

        max_turns = _optional_int(env, "MAX_TURNS")
        if max_turns is not None and max_turns < 1:
            raise ConfigurationError("MAX_TURNS must be a positive integer")

        max_tokens = _optional_int(env, "MAX_TOKENS")
        if max_tokens is None and provider == "anthropic":
            max_tokens = DEFAULT_MAX_TOKENS

        context_warning_tokens = _optional_int(env, "CONTEXT_WARNING_TOKENS")
        if context_warning_tokens is None:
            context_warning_tokens = DEFAULT_CONTEXT_WARNING_TOKENS
        elif context_warning_tokens <= 0:
            context_warning_tokens = None

        try:
            return cls(
                provider=provider,
                base_url=base_url,
                api_key=api_key,
                model=model,
                system_prompt=env.get("SYSTEM_PROMPT") or None,
                max_turns=max_turns,
                max_tokens=max_tokens,
                tool_argument_errors=env.get("TOOL_ARGUMENT_ERRORS", "abort").strip().lower(),
                context_warning_tokens=context_warning_tokens,
                log_level=env.get("LOG_LEVEL", "WARNING").upper(),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def _optional_int(env: Mapping[str, str], name: str) -> int | None:
    value = env.get(name)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
