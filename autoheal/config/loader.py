"""
Configuration loader with environment variable and secrets handling.

Loads configuration from:
1. config.yaml (main config)
2. .env.local (secrets file; loaded into process env)
3. Environment variables (highest priority)

Secrets are NEVER logged or displayed.
"""

import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from autoheal.config.env import env_bool, env_list
from autoheal.config.schema import AgentConfig
from autoheal.errors import ConfigurationError


REDACTED = "[REDACTED]"


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Priority (highest to lowest):
    1. OS Environment variables
    2. .env.local file
    3. config.yaml

    Recognized environment variables:
        ALERT_WEBHOOKS          comma-separated URLs
        AUTO_FIX_ENABLED        true/false
        TICK_INTERVAL_SECONDS   float
        VERCEL_API_TOKEN        sources.deployment.api_token
        VERCEL_TEAM_ID          sources.deployment.team_id
        SUPABASE_URL            sources.data_platform.url
        SUPABASE_SERVICE_KEY    sources.data_platform.service_key
    """

    # Secrets that must never be logged
    SECRET_KEYS = {
        "api_token",
        "service_key",
        "alert_webhooks",
        "action_hooks",
    }

    _SOURCE_ENV = (
        ("VERCEL_API_TOKEN", "deployment", "api_token"),
        ("VERCEL_TEAM_ID", "deployment", "team_id"),
        ("SUPABASE_URL", "data_platform", "url"),
        ("SUPABASE_SERVICE_KEY", "data_platform", "service_key"),
    )

    def __init__(self, config_dir: Path = Path("config"), config_file: str = "config.yaml"):
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / config_file
        self.secrets_file = self.config_dir / ".env.local"

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources.

        Returns:
            Merged configuration dictionary

        Raises:
            ConfigurationError: If config.yaml is missing, unreadable or not a mapping
        """
        if not self.config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_file}")

        # 1) Base config from YAML
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_file}: {e}") from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self.config_file}")

        # 2) Secrets from .env.local; never override already-set OS env vars
        if self.secrets_file.exists():
            load_dotenv(self.secrets_file, override=False)

        # 3) Environment overrides
        self._apply_env_overrides(config)

        return config

    def _apply_env_overrides(self, config: Dict[str, Any]) -> None:
        webhooks = env_list("ALERT_WEBHOOKS")
        if webhooks is not None:
            config["alert_webhooks"] = webhooks

        auto_fix = env_bool("AUTO_FIX_ENABLED")
        if auto_fix is not None:
            config["auto_fix_enabled"] = auto_fix

        interval = os.getenv("TICK_INTERVAL_SECONDS", "").strip()
        if interval:
            try:
                config["tick_interval_seconds"] = float(interval)
            except ValueError as e:
                raise ConfigurationError(
                    f"TICK_INTERVAL_SECONDS must be a number, got {interval!r}"
                ) from e

        for env_name, section, key in self._SOURCE_ENV:
            value = os.getenv(env_name)
            if value:
                sources = config.get("sources") or {}
                block = sources.get(section) or {}
                block[key] = value
                sources[section] = block
                config["sources"] = sources

    def load_and_validate(self) -> AgentConfig:
        """
        Load and validate configuration.

        Raises:
            ConfigurationError: On any load or validation failure
        """
        config_dict = self.load()

        try:
            return AgentConfig(**config_dict)
        except ValidationError as e:
            # Scrub secrets from error message
            error_msg = str(e)
            for secret_value in self._secret_values(config_dict):
                error_msg = error_msg.replace(secret_value, REDACTED)
            raise ConfigurationError(f"Configuration validation failed: {error_msg}") from e

    @classmethod
    def _secret_values(cls, value: Any, key: str = "") -> List[str]:
        if key.lower() in cls.SECRET_KEYS:
            if isinstance(value, str):
                return [value] if value else []
            if isinstance(value, dict):
                value = list(value.values())
            if isinstance(value, list):
                return [v for v in value if isinstance(v, str) and v]
        if isinstance(value, dict):
            return [s for k, v in value.items() for s in cls._secret_values(v, str(k))]
        return []

    @classmethod
    def scrub_secrets(cls, value: Any, key: str = "") -> Any:
        """
        Copy of *value* with secret fields replaced by [REDACTED].

        Webhook and hook URLs count as secrets; chat-style webhooks embed
        their token in the path.
        """
        if key.lower() in cls.SECRET_KEYS and value:
            return REDACTED
        if isinstance(value, dict):
            return {k: cls.scrub_secrets(v, str(k)) for k, v in value.items()}
        if isinstance(value, list):
            return [cls.scrub_secrets(v) for v in value]
        return value


def load_config(config_dir: Path = Path("config"), config_file: str = "config.yaml") -> AgentConfig:
    """
    Convenience function to load and validate configuration.

    Args:
        config_dir: Directory containing config files
        config_file: YAML file name inside config_dir

    Returns:
        Validated AgentConfig instance
    """
    loader = ConfigLoader(config_dir, config_file)
    return loader.load_and_validate()
