"""Tests for configuration loading and log redaction."""

import logging
from pathlib import Path
from unittest.mock import patch

from news_digest.config import Settings, get_settings
from news_digest.log import RedactingFilter

ENV = {
    "OPENAI_API_KEY": " sk-secret ",
    "ANTHROPIC_API_KEY": "",
    "GMAIL_USER": "me@gmail.com",
    "GMAIL_APP_PASSWORD": "app-secret",
}


def test_get_settings_from_yaml_and_env(tmp_path: Path) -> None:
    """Test YAML sections are applied and environment overrides provider selection."""
    config = tmp_path / "config.yaml"
    config.write_text(
        "provider:\n"
        "  ai_provider: anthropic\n"
        "  max_calls_per_run: 10\n"
        "mail:\n"
        "  smtp_port: 587\n"
        "paths:\n"
        "  store_file: data/digest.yaml\n",
        encoding="utf-8",
    )

    with patch.dict("os.environ", {**ENV, "AI_PROVIDER": "Auto"}, clear=True):
        settings = get_settings(config)

    assert settings.openai_api_key == "sk-secret"
    assert settings.provider.ai_provider == "auto"
    assert settings.provider.max_calls_per_run == 10
    assert settings.mail.smtp_port == 587
    assert settings.store_file == Path("data/digest.yaml")
    assert settings.history_dir == Path("history")


def test_get_settings_without_file(tmp_path: Path) -> None:
    with patch.dict("os.environ", {}, clear=True):
        settings = get_settings(tmp_path / "missing.yaml")

    assert settings.provider.ai_provider == "openai"
    assert settings.provider.openai_model == "gpt-5.2"


def test_missing_credentials() -> None:
    settings = Settings(openai_api_key="sk")

    assert settings.missing_credentials(deliver=False) == []
    assert settings.missing_credentials() == ["GMAIL_USER", "GMAIL_APP_PASSWORD"]

    settings.provider.ai_provider = "anthropic"
    assert settings.missing_credentials(deliver=False) == ["ANTHROPIC_API_KEY"]


def test_secrets() -> None:
    settings = Settings(openai_api_key="sk", gmail_app_password="pw")

    assert settings.secrets == ["sk", "pw"]


def test_redacting_filter() -> None:
    """Test secrets are masked in the message and its arguments."""
    record = logging.LogRecord(
        "news_digest", logging.INFO, __file__, 1, "key=%s extra=%s", ("sk-secret", "ok"), None
    )

    RedactingFilter(["sk-secret"]).filter(record)

    assert record.getMessage() == "key=[REDACTED] extra=ok"
