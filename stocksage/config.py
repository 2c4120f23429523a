"""Configuration loading for StockSage.

Settings come from ``~/.config/stocksage/config.toml``. API keys and the
model name can be overridden by environment variables, which take
precedence over the file.
"""

import os
from pathlib import Path
from typing import Any, Optional

import toml
from pydantic import BaseModel, Field


DEFAULT_CONFIG_DIR = Path.home() / ".config" / "stocksage"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"

# Placeholder values written by the template; treated as "not configured".
PLACEHOLDER_PREFIX = "your-"


class FinnhubSettings(BaseModel):
    api_key: Optional[str] = None
    base_url: str = "https://finnhub.io/api/v1"


class YahooSettings(BaseModel):
    base_url: str = "https://query2.finance.yahoo.com"
    user_agent: str = "Mozilla/5.0"


class OpenAISettings(BaseModel):
    api_key: Optional[str] = None
    model: str = "gpt-4-turbo-preview"
    base_url: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4000, gt=0)
    input_price_per_1k: float = Field(default=0.01, ge=0)
    output_price_per_1k: float = Field(default=0.03, ge=0)
    timeout: float = Field(default=60.0, gt=0)


class TranslatorSettings(BaseModel):
    api_key: Optional[str] = None
    region: str = "eastus"
    endpoint: str = "https://api.cognitive.microsofttranslator.com"
    price_per_million_chars: float = Field(default=10.0, ge=0)
    cache_max_entries: Optional[int] = Field(default=None, gt=0)
    timeout: float = Field(default=30.0, gt=0)


class MarketSettings(BaseModel):
    intraday_limit: int = Field(default=30, gt=0)
    intraday_days: int = Field(default=3, gt=0)
    intraday_interval: str = "15m"
    news_limit: int = Field(default=8, gt=0)
    news_max_age_hours: float = Field(default=48.0, gt=0)
    http_timeout: float = Field(default=30.0, gt=0)


class Settings(BaseModel):
    """All StockSage settings."""

    finnhub: FinnhubSettings = Field(default_factory=FinnhubSettings)
    yahoo: YahooSettings = Field(default_factory=YahooSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    translator: TranslatorSettings = Field(default_factory=TranslatorSettings)
    market: MarketSettings = Field(default_factory=MarketSettings)


def _clean(value: Any) -> Optional[str]:
    """Return a usable secret, or None for empty and placeholder values."""
    if not value or not isinstance(value, str):
        return None
    if value.startswith(PLACEHOLDER_PREFIX):
        return None
    return value


def get_config_path() -> Path:
    """Get the config file path, honouring ``STOCKSAGE_CONFIG``."""
    override = os.environ.get("STOCKSAGE_CONFIG")
    return Path(override) if override else DEFAULT_CONFIG_PATH


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from the TOML file and the environment.

    A missing file yields defaults. Environment variables override the
    file for secrets and the model name.

    Args:
        config_path: Optional explicit path to the TOML file.

    Returns:
        Validated Settings.

    Raises:
        toml.TomlDecodeError: If the file exists but is not valid TOML.
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    path = config_path or get_config_path()
    data: dict[str, Any] = {}
    if path.exists():
        data = toml.load(path)

    settings = Settings.model_validate(data)

    finnhub_key = os.environ.get("FINNHUB_API_KEY") or _clean(settings.finnhub.api_key)
    openai_key = os.environ.get("OPENAI_API_KEY") or _clean(settings.openai.api_key)
    model = os.environ.get("OPENAI_MODEL") or settings.openai.model
    translator_key = os.environ.get("AZURE_TRANSLATOR_KEY") or _clean(settings.translator.api_key)
    region = os.environ.get("AZURE_TRANSLATOR_REGION") or settings.translator.region

    return settings.model_copy(
        update={
            "finnhub": settings.finnhub.model_copy(update={"api_key": finnhub_key}),
            "openai": settings.openai.model_copy(
                update={"api_key": openai_key, "model": model}
            ),
            "translator": settings.translator.model_copy(
                update={"api_key": translator_key, "region": region}
            ),
        }
    )


def write_template_config(config_path: Optional[Path] = None) -> Path:
    """Create a template configuration file.

    Args:
        config_path: Where to write the file. Defaults to the standard path.

    Returns:
        Path of the written file.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    template = {
        "finnhub": {
            "api_key": "your-finnhub-api-key",  # Leave as-is to use Yahoo only
        },
        "openai": {
            "api_key": "",  # Leave empty to use OPENAI_API_KEY env var
            "model": "gpt-4-turbo-preview",
        },
        "translator": {
            "api_key": "your-azure-translator-key",
            "region": "eastus",
        },
        "market": {
            "intraday_limit": 30,
            "news_limit": 8,
        },
    }

    with open(path, "w") as f:
        toml.dump(template, f)

    return path


def validate_settings(settings: Settings, translate: bool = False) -> list[str]:
    """Return the list of missing required keys.

    Args:
        settings: Loaded settings.
        translate: Whether translation will be requested.

    Returns:
        Human-readable names of missing keys (empty when complete).
    """
    missing = []
    if not settings.openai.api_key:
        missing.append("openai.api_key (or set OPENAI_API_KEY env var)")
    if translate and not settings.translator.api_key:
        missing.append("translator.api_key (or set AZURE_TRANSLATOR_KEY env var)")
    return missing
