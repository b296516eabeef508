"""Persistent state stores."""

from autoraffle.storage.sqlite import SQLiteStateStore

__all__ = ["SQLiteStateStore"]
