from typing import Dict, Protocol
import logging

import diskcache

from tripwire import config

logger = logging.getLogger("tripwire")

NOTIFICATIONS_ENABLED_KEY = "high-signal-notifications-enabled"


class BooleanStorage(Protocol):
    def get_boolean(self, key: str, default: bool) -> bool:
        ...

    def set_boolean(self, key: str, value: bool) -> None:
        ...


class MemoryBooleanStorage:
    values: Dict[str, bool]

    def __init__(self, **values: bool):
        self.values = dict(values)

    def get_boolean(self, key: str, default: bool) -> bool:
        return self.values.get(key, default)

    def set_boolean(self, key: str, value: bool) -> None:
        self.values[key] = value


class DiskBooleanStorage(diskcache.Cache):
    """Boolean settings persisted in a diskcache directory."""

    def get_boolean(self, key: str, default: bool) -> bool:
        value = self.get(key, default)
        if not isinstance(value, bool):
            logger.warning("Ignoring non-boolean value for setting %s", key)
            return default
        return value

    def set_boolean(self, key: str, value: bool) -> None:
        self.set(key, bool(value))


def get_storage() -> DiskBooleanStorage:
    logger.info("Opening settings dir: %s", config.SETTINGS_DIR)
    return DiskBooleanStorage(config.SETTINGS_DIR)


class NotificationsSetting:
    """Whether failed-check notifications are enabled at all. Defaults to
    enabled when nothing has been stored yet."""

    storage: BooleanStorage
    key: str

    def __init__(self, storage: BooleanStorage, key: str = NOTIFICATIONS_ENABLED_KEY):
        self.storage = storage
        self.key = key

    def is_enabled(self) -> bool:
        return self.storage.get_boolean(self.key, True)

    def set_enabled(self, enabled: bool) -> bool:
        """Persist ``enabled``. Returns ``False`` if it was already in effect."""
        if self.is_enabled() == enabled:
            return False
        self.storage.set_boolean(self.key, enabled)
        logger.info("Notifications %s", "enabled" if enabled else "disabled")
        return True
