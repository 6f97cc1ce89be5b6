"""
Key-value persistence for offline goal caching and sync bookkeeping.

Provides a file-based JSON store (one file per key) and a dict-backed
in-memory store with the same interface, so services receive their
persistence as an injected dependency instead of global state.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    File-based key-value store with JSON storage.

    Each key is written to ``<store_dir>/<key>.json`` as
    ``{"timestamp": ..., "data": ...}``. Unreadable files are removed and
    treated as missing.
    """

    def __init__(self, store_dir: str = ".cache"):
        """
        Initialize the store with the specified directory.

        Args:
            store_dir: Directory path for stored values (default: ".cache")
        """
        self.store_dir = Path(store_dir)
        self._ensure_store_directory()
        logger.debug(f"JsonFileStore initialized with store_dir: {self.store_dir}")

    def _ensure_store_directory(self) -> None:
        """Create store directory if it doesn't exist."""
        try:
            self.store_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create store directory {self.store_dir}: {e}")
            raise

    def _get_file_path(self, key: str) -> Path:
        # Sanitize key for filesystem safety
        safe_key = "".join(c for c in key if c.isalnum() or c in ('-', '_', '.'))
        if not safe_key:
            raise ValueError(f"Invalid store key: '{key}'")
        return self.store_dir / f"{safe_key}.json"

    def _read_entry(self, key: str) -> Optional[Dict[str, Any]]:
        entry_file = self._get_file_path(key)

        if not entry_file.exists():
            logger.debug(f"Store miss: no file for key '{key}'")
            return None

        try:
            with open(entry_file, 'r', encoding='utf-8') as f:
                entry = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to read store file for key '{key}': {e}")
            self._remove_file(entry_file)
            return None

        if not isinstance(entry, dict) or 'timestamp' not in entry or 'data' not in entry:
            logger.warning(f"Invalid store entry structure for key '{key}', removing")
            self._remove_file(entry_file)
            return None

        return entry

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a stored value.

        Args:
            key: Key identifier
            default: Value returned when the key is missing or unreadable

        Returns:
            Stored value, or default
        """
        entry = self._read_entry(key)
        if entry is None:
            return default
        return entry['data']

    def set(self, key: str, value: Any) -> None:
        """
        Store a JSON-serializable value with the current timestamp.

        Raises:
            OSError: If the file cannot be written
            TypeError: If the value is not JSON-serializable
        """
        entry_file = self._get_file_path(key)
        entry = {
            'timestamp': datetime.now().isoformat(),
            'data': value
        }

        try:
            with open(entry_file, 'w', encoding='utf-8') as f:
                json.dump(entry, f, indent=2, ensure_ascii=False)
            logger.debug(f"Stored value for key '{key}' in {entry_file}")
        except (OSError, TypeError) as e:
            logger.error(f"Failed to store value for key '{key}': {e}")
            raise

    def get_updated_at(self, key: str) -> Optional[datetime]:
        """Return when the key was last written, or None if it is missing."""
        entry = self._read_entry(key)
        if entry is None:
            return None
        try:
            return datetime.fromisoformat(entry['timestamp'])
        except (TypeError, ValueError):
            logger.warning(f"Invalid timestamp for key '{key}'")
            return None

    def delete(self, key: str) -> None:
        entry_file = self._get_file_path(key)
        if entry_file.exists():
            self._remove_file(entry_file)
            logger.info(f"Deleted stored value for key '{key}'")

    def clear(self) -> int:
        """
        Remove every stored value.

        Returns:
            Number of files removed
        """
        removed_count = 0
        try:
            for entry_file in self.store_dir.glob("*.json"):
                self._remove_file(entry_file)
                removed_count += 1
        except OSError as e:
            logger.error(f"Failed to clear store directory: {e}")
            raise

        logger.info(f"Cleared store ({removed_count} files)")
        return removed_count

    def _remove_file(self, entry_file: Path) -> None:
        try:
            entry_file.unlink()
            logger.debug(f"Removed store file: {entry_file}")
        except OSError as e:
            logger.warning(f"Failed to remove store file {entry_file}: {e}")


class InMemoryStore:
    """Dict-backed store with the same interface as JsonFileStore."""

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._timestamps: Dict[str, datetime] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._timestamps[key] = datetime.now()

    def get_updated_at(self, key: str) -> Optional[datetime]:
        return self._timestamps.get(key)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
        self._timestamps.pop(key, None)

    def clear(self) -> int:
        removed_count = len(self._data)
        self._data.clear()
        self._timestamps.clear()
        return removed_count
