"""Base utilities for the LLM analysis agent.

This module builds the OpenAI client and resolves which model to use.
"""

import logging
import os
from typing import Optional

import httpx
from openai import AsyncOpenAI

from stocksage.config import OpenAISettings


logger = logging.getLogger(__name__)

# Default model to use for analysis
DEFAULT_MODEL = "gpt-4-turbo-preview"


def get_model(settings: Optional[OpenAISettings] = None) -> str:
    """Get the model to use for analysis.

    Checks OPENAI_MODEL environment variable, then the settings, then
    falls back to the default.

    Returns:
        Model name string.
    """
    env_model = os.environ.get("OPENAI_MODEL")
    if env_model:
        return env_model
    if settings is not None and settings.model:
        return settings.model
    return DEFAULT_MODEL


def get_api_key(settings: Optional[OpenAISettings] = None) -> Optional[str]:
    """Get the OpenAI API key.

    Returns:
        API key string or None if not configured.
    """
    if settings is not None and settings.api_key:
        return settings.api_key
    return os.environ.get("OPENAI_API_KEY")


def create_client(
    settings: OpenAISettings,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AsyncOpenAI:
    """Create the chat completions client.

    Client-side retries are disabled; a failed request surfaces immediately.

    Args:
        settings: OpenAI settings.
        http_client: Optional HTTP client to send requests through.

    Returns:
        Configured AsyncOpenAI instance.

    Raises:
        ValueError: If no API key is configured.
    """
    api_key = get_api_key(settings)
    if not api_key:
        raise ValueError("OpenAI API key not configured")

    kwargs = {"api_key": api_key, "max_retries": 0, "timeout": settings.timeout}
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    if http_client is not None:
        kwargs["http_client"] = http_client
    return AsyncOpenAI(**kwargs)


def _get_model_info(model: str) -> tuple[str, str]:
    """Get model display name and tier.

    Args:
        model: Model name string.

    Returns:
        Tuple of (display_name, tier).
    """
    if model.startswith("gpt-4-turbo"):
        return ("GPT-4 Turbo", "turbo")

    if model.startswith("gpt-4o"):
        return (model, "omni")

    if model.startswith("gpt-4"):
        return (model, "standard")

    if model.startswith("gpt-"):
        return (model, "basic")

    return (model, "unknown")


def log_model_call(model: str) -> None:
    """Log which model an analysis request goes to."""
    display_name, tier = _get_model_info(model)
    logger.info("Requesting analysis from %s (%s)", display_name, tier)
