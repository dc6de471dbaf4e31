"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a configuration value is present but unusable."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required environment variables are absent or blank."""

    def __init__(self, names: tuple[str, ...]) -> None:
        self.names = names
        super().__init__(f"Missing configuration for: {', '.join(names)}")
