"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- Auction records
- The event log
- House metadata
"""

from lossless.core.storage.sqlite_adapter import SQLiteAdapter
from lossless.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
