"""Persisted check state (last-check date and skipped version)."""

from .store import CheckState, JsonFileSkipStore, MemorySkipStore, SkipStore

__all__ = [
    "CheckState",
    "JsonFileSkipStore",
    "MemorySkipStore",
    "SkipStore",
]
