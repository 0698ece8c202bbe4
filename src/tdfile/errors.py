"""Exception types raised across td-file."""

from __future__ import annotations


class TdFileError(Exception):
    """Base class for td-file errors."""


class WatchError(TdFileError):
    """The todo file could not be registered with the filesystem watcher."""


class EditingBlockedError(TdFileError):
    """A mutation was attempted while the session holds an unresolved read error."""


class ConfigError(TdFileError):
    """The configuration could not be read or does not name a todo file."""
