"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class ProviderConfig:
    """AI provider settings."""
    ai_provider: str = "openai"
    openai_model: str = "gpt-5.2"
    anthropic_model: str = "claude-3-5-sonnet-latest"
    max_output_tokens: int = 220
    temperature: float = 0.2
    timeout: float = 30.0
    max_calls_per_run: int = 50
    overload_retry_attempts: int = 3
    overload_retry_base_delay: float = 1.0


@dataclass
class MailConfig:
    """SMTP settings."""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    timeout: float = 30.0


@dataclass
class PathsConfig:
    """Path settings."""
    store_file: Path = Path("digest.yaml")
    history_dir: Path = Path("history")


@dataclass
class Settings:
    """Application settings."""

    # Credentials (from environment only)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gmail_user: str = ""
    gmail_app_password: str = ""

    # Config sections
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    mail: MailConfig = field(default_factory=MailConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @property
    def store_file(self) -> Path:
        return self.paths.store_file

    @property
    def history_dir(self) -> Path:
        return self.paths.history_dir

    @property
    def secrets(self) -> list[str]:
        """Values that must never appear in logs."""
        return [
            s for s in (self.openai_api_key, self.anthropic_api_key, self.gmail_app_password) if s
        ]

    def missing_credentials(self, deliver: bool = True) -> list[str]:
        """List missing or invalid environment variables.

        Args:
            deliver: Whether mail credentials are required too
        """
        missing = []
        provider = self.provider.ai_provider.lower()

        if deliver:
            if not self.gmail_user:
                missing.append("GMAIL_USER")
            if not self.gmail_app_password:
                missing.append("GMAIL_APP_PASSWORD")

        if provider == "openai":
            if not self.openai_api_key:
                missing.append("OPENAI_API_KEY")
        elif provider == "anthropic":
            if not self.anthropic_api_key:
                missing.append("ANTHROPIC_API_KEY")
        elif provider == "auto":
            if not self.openai_api_key and not self.anthropic_api_key:
                missing.append("OPENAI_API_KEY or ANTHROPIC_API_KEY")
        else:
            missing.append("AI_PROVIDER must be one of: openai, anthropic, auto")

        return missing


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", "").strip(),
        gmail_user=os.getenv("GMAIL_USER", "").strip(),
        gmail_app_password=os.getenv("GMAIL_APP_PASSWORD", "").strip(),
    )

    if "provider" in config:
        for key, value in config["provider"].items():
            setattr(settings.provider, key, value)

    if "mail" in config:
        for key, value in config["mail"].items():
            setattr(settings.mail, key, value)

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    # Environment wins over YAML for provider selection
    ai_provider: Optional[str] = os.getenv("AI_PROVIDER")
    if ai_provider:
        settings.provider.ai_provider = ai_provider.strip().lower()
    openai_model = os.getenv("OPENAI_MODEL")
    if openai_model:
        settings.provider.openai_model = openai_model
    anthropic_model = os.getenv("ANTHROPIC_MODEL")
    if anthropic_model:
        settings.provider.anthropic_model = anthropic_model

    return settings
