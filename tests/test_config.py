"""Tests for configuration loading.

**Feature: stock-analysis-pipeline**
"""

import pytest
import toml
from pydantic import ValidationError

from stocksage.config import (
    Settings,
    get_config_path,
    load_settings,
    validate_settings,
    write_template_config,
)


ENV_VARS = (
    "FINNHUB_API_KEY",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "AZURE_TRANSLATOR_KEY",
    "AZURE_TRANSLATOR_REGION",
    "STOCKSAGE_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "missing.toml")

        assert settings.openai.model == "gpt-4-turbo-preview"
        assert settings.openai.temperature == 0.7
        assert settings.openai.max_tokens == 4000
        assert settings.translator.region == "eastus"
        assert settings.translator.cache_max_entries is None
        assert settings.market.intraday_limit == 30
        assert settings.market.news_limit == 8
        assert settings.finnhub.api_key is None

    def test_file_values(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(toml.dumps({
            "openai": {"api_key": "sk-file", "model": "gpt-4o"},
            "finnhub": {"api_key": "fh-file"},
            "market": {"news_limit": 5},
        }))

        settings = load_settings(path)

        assert settings.openai.api_key == "sk-file"
        assert settings.openai.model == "gpt-4o"
        assert settings.finnhub.api_key == "fh-file"
        assert settings.market.news_limit == 5

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text(toml.dumps({"openai": {"api_key": "sk-file", "model": "gpt-4o"}}))
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4-turbo")
        monkeypatch.setenv("AZURE_TRANSLATOR_KEY", "az-env")
        monkeypatch.setenv("AZURE_TRANSLATOR_REGION", "westeurope")

        settings = load_settings(path)

        assert settings.openai.api_key == "sk-env"
        assert settings.openai.model == "gpt-4-turbo"
        assert settings.translator.api_key == "az-env"
        assert settings.translator.region == "westeurope"

    def test_placeholders_are_not_keys(self, tmp_path):
        path = write_template_config(tmp_path / "config.toml")
        settings = load_settings(path)

        assert settings.finnhub.api_key is None
        assert settings.translator.api_key is None
        assert settings.openai.api_key is None

    def test_config_path_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.toml"
        monkeypatch.setenv("STOCKSAGE_CONFIG", str(path))
        assert get_config_path() == path

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(toml.dumps({"market": {"news_limit": 0}}))
        with pytest.raises(ValidationError):
            load_settings(path)


class TestValidateSettings:

    def test_openai_key_required(self):
        missing = validate_settings(Settings())
        assert len(missing) == 1
        assert missing[0].startswith("openai.api_key")

    def test_translator_key_required_only_when_translating(self):
        settings = Settings.model_validate({"openai": {"api_key": "sk"}})
        assert validate_settings(settings) == []
        assert len(validate_settings(settings, translate=True)) == 1
