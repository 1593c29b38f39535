"""
Configuration schema using Pydantic for validation.

Single source of truth for all agent parameters.
Validates on load, fails fast on invalid config.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from autoheal.recovery.actions import ActionType


# ============================================================================
# ENUMS
# ============================================================================

class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _check_url(value: str) -> str:
    value = value.strip()
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"URL must start with http:// or https://: {value!r}")
    return value


# ============================================================================
# ALERTING
# ============================================================================

class AlertingConfig(BaseModel):
    """Webhook delivery settings."""

    timeout_seconds: float = Field(
        gt=0,
        default=10.0,
        description="Per-request webhook timeout"
    )

    max_retries: int = Field(
        ge=0,
        le=5,
        default=0,
        description="Extra attempts per webhook after a failure"
    )


# ============================================================================
# SOURCES
# ============================================================================

class DeploymentSourceConfig(BaseModel):
    """Deployment platform (Vercel) credentials."""

    api_token: str = Field(default="", description="Deployment platform API token")
    base_url: str = Field(default="https://api.vercel.com")
    team_id: Optional[str] = Field(default=None)

    @property
    def enabled(self) -> bool:
        return bool(self.api_token)


class DataPlatformSourceConfig(BaseModel):
    """Data platform (Supabase) endpoint and key."""

    url: str = Field(default="", description="Project REST base URL")
    service_key: str = Field(default="", description="Service role key")
    slow_threshold_ms: float = Field(
        gt=0,
        default=2000,
        description="db_response_time above this is a high-severity breach"
    )

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.service_key)


class ApplicationSourceConfig(BaseModel):
    """Local runtime metrics via psutil."""

    enabled: bool = Field(default=True)
    memory_threshold: float = Field(gt=0, le=1, default=0.8)


class SourcesConfig(BaseModel):
    """Telemetry sources; a source is registered only when configured."""

    deployment: DeploymentSourceConfig = Field(default_factory=DeploymentSourceConfig)
    data_platform: DataPlatformSourceConfig = Field(default_factory=DataPlatformSourceConfig)
    application: ApplicationSourceConfig = Field(default_factory=ApplicationSourceConfig)


# ============================================================================
# REMEDIATION
# ============================================================================

class RemediationConfig(BaseModel):
    """
    Executor wiring.

    dry_run=True registers a logging-only executor for every action type.
    Otherwise each action type with a hook URL gets a webhook executor;
    action types without a hook have no executor and fail when attempted.
    """

    dry_run: bool = Field(default=True)

    action_hooks: Dict[ActionType, str] = Field(
        default_factory=dict,
        description="Hook URL per action type"
    )

    hook_timeout_seconds: float = Field(gt=0, default=10.0)

    @field_validator("action_hooks")
    @classmethod
    def validate_hooks(cls, v: Dict[ActionType, str]) -> Dict[ActionType, str]:
        return {action_type: _check_url(url) for action_type, url in v.items()}


# ============================================================================
# LOGGING
# ============================================================================

class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_dir: Path = Field(
        default=Path("logs"),
        description="Base log directory"
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="File logging level"
    )

    console_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Console logging level"
    )

    json_logs: bool = Field(
        default=True,
        description="Use JSON formatting on log files"
    )

    max_bytes: int = Field(
        ge=1_000_000,
        le=100_000_000,
        default=10_000_000,
        description="Max bytes per log file"
    )

    backup_count: int = Field(
        ge=1,
        le=20,
        default=5,
        description="Number of backup files"
    )


# ============================================================================
# MASTER CONFIGURATION
# ============================================================================

class AgentConfig(BaseModel):
    """
    Master configuration for the monitoring agent.

    Every field has a default; an empty mapping yields a working
    dry-run agent with only the application runtime source.
    """

    system_name: str = Field(
        default="WorkforceOne Global Admin",
        min_length=1,
        description="Value of the `system` field in alert payloads"
    )

    alert_webhooks: List[str] = Field(default_factory=list)

    auto_fix_enabled: bool = Field(default=True)

    tick_interval_seconds: float = Field(
        gt=0,
        default=30.0,
        description="Fixed interval between ticks"
    )

    source_timeout_seconds: float = Field(
        gt=0,
        default=10.0,
        description="Per-source collection deadline"
    )

    series_capacity: int = Field(ge=1, default=1000)

    fix_history_limit: int = Field(ge=1, default=50)

    dedupe_issues: bool = Field(
        default=True,
        description="Refresh the active issue for a recurring breach instead of creating a new one"
    )

    critical_realert_cooldown_seconds: float = Field(ge=0, default=300.0)

    alerting: AlertingConfig = Field(default_factory=AlertingConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    remediation: RemediationConfig = Field(default_factory=RemediationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("alert_webhooks")
    @classmethod
    def validate_webhooks(cls, v: List[str]) -> List[str]:
        return [_check_url(url) for url in v if url.strip()]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentConfig":
        """Load config from dictionary."""
        return cls(**data)
