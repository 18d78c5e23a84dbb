"""
exceptions.py - Custom exceptions for the lanbeacon package.
"""


class LanBeaconError(Exception):
    """Base exception for lanbeacon errors."""
    pass


class SettingsError(LanBeaconError, ValueError):
    """Raised when a setting value is invalid."""
    pass


class UnknownSettingError(SettingsError, KeyError):
    """Raised when a setting name is neither registered nor stored."""
    pass


class ConfigError(LanBeaconError, ValueError):
    """Raised when a configuration value cannot be parsed."""
    pass
