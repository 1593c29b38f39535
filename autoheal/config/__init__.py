"""
Configuration system with Pydantic validation.

Single source of truth for all agent parameters.
"""

from .schema import (
    AgentConfig,
    AlertingConfig,
    SourcesConfig,
    DeploymentSourceConfig,
    DataPlatformSourceConfig,
    ApplicationSourceConfig,
    RemediationConfig,
    LoggingConfig,
    LogLevel,
)

from .loader import (
    ConfigLoader,
    load_config,
)

__all__ = [
    "AgentConfig",
    "AlertingConfig",
    "SourcesConfig",
    "DeploymentSourceConfig",
    "DataPlatformSourceConfig",
    "ApplicationSourceConfig",
    "RemediationConfig",
    "LoggingConfig",
    "LogLevel",
    "ConfigLoader",
    "load_config",
]
