"""Bundled telemetry sources (deployment platform, data platform, application runtime)."""

from autoheal.sources.deployment import DeploymentPlatformSource
from autoheal.sources.database import DataPlatformSource
from autoheal.sources.runtime import ApplicationRuntimeSource

__all__ = [
    "DeploymentPlatformSource",
    "DataPlatformSource",
    "ApplicationRuntimeSource",
]
