"""Errors raised while reading settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable (bad backend name, negative timeout)."""


class MissingConfigurationError(ConfigurationError):
    def __init__(self, names: tuple[str, ...]) -> None:
        super().__init__(f"Missing configuration for: {', '.join(names)}")
        self.names = names
