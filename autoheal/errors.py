"""Exception hierarchy for the autoheal agent."""


class AutohealError(Exception):
    """Base class for all agent errors."""


class ConfigurationError(AutohealError):
    """Configuration could not be loaded or failed validation."""


class SourceCollectionError(AutohealError):
    """A telemetry source failed or missed its collection deadline."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class ActionExecutionError(AutohealError):
    """A remediation action could not be executed."""
