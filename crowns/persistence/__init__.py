"""Persistence port and its store implementations."""

from .port import PersistenceStore, Slot
from .memory import MemoryStore
from .file import JsonFileStore

__all__ = [
    "PersistenceStore",
    "Slot",
    "MemoryStore",
    "JsonFileStore",
]
