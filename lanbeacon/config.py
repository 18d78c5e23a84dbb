"""
Configuration Management

Handles loading configuration from environment variables and config files.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import json

from dotenv import load_dotenv

from .exceptions import ConfigError

# Prefix of the environment variables read by env_overrides()
ENV_PREFIX = 'LANBEACON_'

# Accepted spellings of a true boolean in the environment
TRUE_VALUES = ('1', 'true', 'yes', 'on')

# Setting names shared with the settings registry
BROADCAST_INTERVAL = 'BroadcastInterval'
BROADCAST_EXPIRY = 'BroadcastExpiry'
BROADCAST_PORT = 'BroadcastPort'

DEFAULT_BROADCAST_INTERVAL = 5000  # ms
DEFAULT_BROADCAST_EXPIRY = 30000  # ms
DEFAULT_BROADCAST_PORT = 40816


@dataclass
class Config:
    """
    LAN Beacon Configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (LANBEACON_*)
    2. Config file (config.json)
    3. Default values
    """
    # Broadcast discovery
    broadcast_interval: int = DEFAULT_BROADCAST_INTERVAL
    broadcast_expiry: int = DEFAULT_BROADCAST_EXPIRY
    broadcast_port: int = DEFAULT_BROADCAST_PORT

    # Identity
    device_name: Optional[str] = None  # Host name if not set
    data_dir: Path = field(default_factory=lambda: Path('./lanbeacon_data'))

    # Hide our own announcements from the peer list
    filter_self: bool = True

    # Logging
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        config = cls()
        for key, value in env_overrides().items():
            setattr(config, key, value)
        return config

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()

        # Broadcast discovery
        config.broadcast_interval = data.get('broadcast_interval', config.broadcast_interval)
        config.broadcast_expiry = data.get('broadcast_expiry', config.broadcast_expiry)
        config.broadcast_port = data.get('broadcast_port', config.broadcast_port)

        # Identity
        config.device_name = data.get('device_name', config.device_name)
        if 'data_dir' in data:
            config.data_dir = Path(data['data_dir'])

        config.filter_self = data.get('filter_self', config.filter_self)

        # Logging
        config.log_level = data.get('log_level', config.log_level)

        return config

    def settings(self) -> Dict[str, Any]:
        """Broadcast values keyed by their settings registry names."""
        return {
            BROADCAST_INTERVAL: self.broadcast_interval,
            BROADCAST_EXPIRY: self.broadcast_expiry,
            BROADCAST_PORT: self.broadcast_port,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'broadcast_interval': self.broadcast_interval,
            'broadcast_expiry': self.broadcast_expiry,
            'broadcast_port': self.broadcast_port,
            'device_name': self.device_name,
            'data_dir': str(self.data_dir),
            'filter_self': self.filter_self,
            'log_level': self.log_level,
        }

    def save(self, path: Path):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def _env_int(name: str) -> int:
    value = os.environ[name]
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name}: expected an integer, got {value!r}")


def env_overrides() -> Dict[str, Any]:
    """
    Read the LANBEACON_* variables (and .env) that are actually set.

    Returns:
        Config field names mapped to parsed values, only for variables present
    """
    load_dotenv()

    overrides: Dict[str, Any] = {}

    # Broadcast discovery
    for key in ('broadcast_interval', 'broadcast_expiry', 'broadcast_port'):
        name = ENV_PREFIX + key.upper()
        if name in os.environ:
            overrides[key] = _env_int(name)

    # Identity
    if 'LANBEACON_DEVICE_NAME' in os.environ:
        overrides['device_name'] = os.environ['LANBEACON_DEVICE_NAME'] or None
    if os.environ.get('LANBEACON_DATA_DIR'):
        overrides['data_dir'] = Path(os.environ['LANBEACON_DATA_DIR'])

    if 'LANBEACON_FILTER_SELF' in os.environ:
        overrides['filter_self'] = os.environ['LANBEACON_FILTER_SELF'].strip().lower() in TRUE_VALUES

    # Logging
    if 'LANBEACON_LOG_LEVEL' in os.environ:
        overrides['log_level'] = os.environ['LANBEACON_LOG_LEVEL']

    return overrides


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment.

    Environment variables override file settings, whatever their value.
    """
    # Start with defaults
    config = Config()

    # Load from file if provided
    if config_path and config_path.exists():
        config = Config.from_file(config_path)

    # Override with the environment variables that are set
    for key, value in env_overrides().items():
        setattr(config, key, value)

    return config


# Example config file template
EXAMPLE_CONFIG = """
{
  "broadcast_interval": 5000,
  "broadcast_expiry": 30000,
  "broadcast_port": 40816,
  "device_name": "Laptop",
  "data_dir": "./lanbeacon_data",
  "filter_self": true,
  "log_level": "INFO"
}
"""
