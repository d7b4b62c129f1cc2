"""
Exceptions for stormwater analysis.
"""


class StormwaterError(Exception):
    """Base exception for stormwater analysis errors."""

    pass


class InvalidReadingError(StormwaterError):
    """A sensor, weather or survey record could not be read."""

    pass


class ConfigurationError(StormwaterError):
    """Invalid environment configuration."""

    pass
