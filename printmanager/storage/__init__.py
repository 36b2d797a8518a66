"""Storage module for the project catalog.

The catalog lives in a single SQLite database (<config dir>/ThreeDPrintManager.db)
whose schema is created by the versioned SQL scripts in storage/migrations/.
User settings are managed separately via YAML (see printmanager/utils/settings.py).
"""

from printmanager.storage.manager import FileSyncResult, StorageManager

__all__ = ["FileSyncResult", "StorageManager"]
