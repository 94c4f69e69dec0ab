"""Persistence for closed activity sessions and day summaries."""

from pulselog.storage.base import SessionStore, StorageUnavailable
from pulselog.storage.buffered import BufferedStore
from pulselog.storage.export import ExportFormat, ExportScope, export_range
from pulselog.storage.memory import InMemoryStore
from pulselog.storage.retention import RetentionResult, apply_retention
from pulselog.storage.sqlite import SqliteStore

__all__ = [
    "BufferedStore",
    "ExportFormat",
    "ExportScope",
    "InMemoryStore",
    "RetentionResult",
    "SessionStore",
    "SqliteStore",
    "StorageUnavailable",
    "apply_retention",
    "export_range",
]
