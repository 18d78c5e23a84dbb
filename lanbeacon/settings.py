"""
Settings Registry

Design Decision: Live Settings
==============================

Options Considered:
1. Read the Config dataclass once at startup
   - Simple
   - Every change needs a restart
2. Named settings with change notifications
   - Components subscribe and reapply only what changed
   - Values can be pushed from a config reload, the CLI or tests

Decision: Named settings with change notifications
- The discovery engine registers the settings it owns (with defaults)
- Subscribers receive one notification per batch, carrying the names
  whose values actually changed
- Values may be stored before the owning setting is registered (e.g.
  loaded from a config file at startup); they are validated once the
  setting is added
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from .exceptions import SettingsError, UnknownSettingError

logger = logging.getLogger(__name__)


class SettingType(Enum):
    """Value types a setting can hold."""
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"


@dataclass
class Setting:
    """
    A named, typed setting with a default value.

    Integer settings may carry inclusive bounds which are enforced
    whenever a value is stored.
    """
    type: SettingType
    name: str
    title: str
    default: Any
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    def coerce(self, value: Any) -> Any:
        """Convert a raw value (e.g. from the environment) to this setting's type."""
        if self.type == SettingType.INTEGER:
            if isinstance(value, bool):
                raise SettingsError(f"{self.name}: expected an integer, got {value!r}")
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise SettingsError(f"{self.name}: expected an integer, got {value!r}")
            if self.minimum is not None and value < self.minimum:
                raise SettingsError(f"{self.name}: {value} is below the minimum of {self.minimum}")
            if self.maximum is not None and value > self.maximum:
                raise SettingsError(f"{self.name}: {value} is above the maximum of {self.maximum}")
            return value

        if self.type == SettingType.BOOLEAN:
            if isinstance(value, str):
                return value.strip().lower() in ('1', 'true', 'yes', 'on')
            return bool(value)

        return str(value)


# Callback type for change notifications (list of changed names)
SettingsCallback = Callable[[List[str]], None]


class SettingsRegistry:
    """
    Holds named settings and notifies subscribers when values change.

    Usage:
        registry = SettingsRegistry()
        registry.add(Setting(SettingType.INTEGER, 'BroadcastPort', 'Broadcast Port', 40816))
        registry.subscribe(lambda names: print(names))
        registry.set('BroadcastPort', 40817)   # prints ['BroadcastPort']
    """

    def __init__(self):
        self._settings: Dict[str, Setting] = {}
        self._values: Dict[str, Any] = {}
        self._callbacks: List[SettingsCallback] = []

    def add(self, setting: Setting):
        """Register a setting. A value stored earlier under its name is validated."""
        if setting.name in self._values:
            self._values[setting.name] = setting.coerce(self._values[setting.name])
        self._settings[setting.name] = setting

    def remove(self, setting: Setting):
        """Unregister a setting. Its stored value (if any) is kept."""
        if self._settings.get(setting.name) is setting:
            del self._settings[setting.name]

    def get(self, name: str) -> Optional[Setting]:
        """Get a registered setting by name."""
        return self._settings.get(name)

    def value(self, name: str) -> Any:
        """Current value of a setting: the stored value, else its default."""
        if name in self._values:
            return self._values[name]
        setting = self._settings.get(name)
        if setting is None:
            raise UnknownSettingError(name)
        return setting.default

    def set(self, name: str, value: Any) -> bool:
        """
        Store a single value.

        Returns:
            True if the value changed (and subscribers were notified)
        """
        return bool(self.update({name: value}))

    def update(self, values: Dict[str, Any]) -> List[str]:
        """
        Store several values as one batch.

        All values are validated before any is stored, so an invalid
        entry leaves the registry untouched.

        Returns:
            Names whose value actually changed, in the order given
        """
        coerced = {}
        for name, value in values.items():
            setting = self._settings.get(name)
            coerced[name] = setting.coerce(value) if setting else value

        changed = []
        for name, value in coerced.items():
            known = name in self._values or name in self._settings
            previous = self.value(name) if known else None
            self._values[name] = value
            if not known or previous != value:
                changed.append(name)

        if changed:
            self._notify(changed)
        return changed

    def reset(self, names: Iterable[str]) -> List[str]:
        """Drop stored values so the registered defaults apply again."""
        changed = []
        for name in names:
            if name not in self._values:
                continue
            old = self._values.pop(name)
            setting = self._settings.get(name)
            if setting is None or setting.default != old:
                changed.append(name)

        if changed:
            self._notify(changed)
        return changed

    def subscribe(self, callback: SettingsCallback):
        """Register a callback for change notifications."""
        self._callbacks.append(callback)

    def unsubscribe(self, callback: SettingsCallback):
        """Remove a previously registered callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify(self, changed: List[str]):
        logger.debug(f"Settings changed: {', '.join(changed)}")
        for callback in list(self._callbacks):
            try:
                callback(list(changed))
            except Exception as e:
                logger.error(f"Settings callback error: {e}")
