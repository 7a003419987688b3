from __future__ import annotations


class WatchError(Exception):
    pass


class ConfigError(WatchError):
    pass


class ExtractionError(WatchError):
    pass


class NotificationError(WatchError):
    pass
