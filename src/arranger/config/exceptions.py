"""Configuration errors."""


class ConfigError(Exception):
    """Raised when the configuration file, an environment variable or an override is invalid."""
