"""Persistence for moderation decisions and archived content.

This package provides:
- Ports: the repository and content-storage capabilities the engine needs
- In-memory stores: reference implementations for tests and dry runs
- File stores: JSON/text files on local disk
"""

from momentguard.storage.file_store import FileContentStorage, JsonModerationRepository
from momentguard.storage.memory import (
    InMemoryContentStorage,
    InMemoryModerationRepository,
    NullContentStorage,
)
from momentguard.storage.ports import ContentStorage, ModerationRepository

__all__ = [
    "ContentStorage",
    "ModerationRepository",
    "InMemoryContentStorage",
    "InMemoryModerationRepository",
    "NullContentStorage",
    "FileContentStorage",
    "JsonModerationRepository",
]
