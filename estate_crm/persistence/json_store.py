"""
JSON Store - One JSON document on disk

Module: persistence.json_store
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Document-level load/save for lists or objects
  - Automatic directory creation
  - Atomic writes (temp file + rename)
  - Distinct errors for I/O and format problems

ARCHITECTURE:
JSONStore is the leaf of the persistence layer. It knows nothing about
entities: RecordStore keeps one JSONStore per collection and decides how
to recover from the errors raised here.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from ..core.exceptions import ServerError


class JSONStoreError(ServerError):
    """Base JSON store error"""
    pass


class JSONStoreIOError(JSONStoreError):
    """File I/O error"""
    pass


class JSONStoreFormatError(JSONStoreError):
    """JSON format error"""
    pass


class JSONStore:
    """
    A single JSON document.

    Handles:
    - Automatic directory creation
    - Atomic writes (temp file + rename)
    - Restrictive file permissions (0600)
    """

    def __init__(self, file_path: str, default_data: Optional[Any] = None):
        """
        Initialize JSON store

        Args:
            file_path: Path to JSON file
            default_data: Value returned when the file doesn't exist
        """
        self.logger = logging.getLogger(f"persistence.{self.__class__.__name__}")
        self.file_path = Path(file_path)
        self.default_data = [] if default_data is None else default_data

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def exists(self) -> bool:
        return self.file_path.exists()

    def load(self) -> Any:
        """
        Load data from JSON file

        Returns:
            Parsed JSON data, or a copy of the default when the file is missing

        Raises:
            JSONStoreIOError: If file cannot be read
            JSONStoreFormatError: If JSON is invalid
        """
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            self.logger.debug(f"{self.file_path} not found, returning default data")
            return copy.deepcopy(self.default_data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise JSONStoreFormatError(f"Invalid JSON in {self.file_path}: {e}")
        except OSError as e:
            raise JSONStoreIOError(f"Failed to read {self.file_path}: {e}")

    def save(self, data: Any) -> None:
        """
        Save data to JSON file (atomic write)

        Args:
            data: Data to save

        Raises:
            JSONStoreIOError: If write fails
        """
        temp_path = self.file_path.with_suffix('.tmp')
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_path.replace(self.file_path)
            self.file_path.chmod(0o600)
        except (OSError, TypeError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise JSONStoreIOError(f"Failed to write {self.file_path}: {e}")


# ============================================================================
# Unit Tests
# ============================================================================

if __name__ == "__main__":
    import unittest
    import tempfile
    import shutil

    class TestJSONStore(unittest.TestCase):
        """Test suite for JSONStore"""

        def setUp(self):
            """Setup before each test"""
            self.test_dir = tempfile.mkdtemp()
            self.store_path = os.path.join(self.test_dir, "test.json")

        def tearDown(self):
            """Cleanup after each test"""
            if os.path.exists(self.test_dir):
                shutil.rmtree(self.test_dir)

        def test_missing_file_returns_default(self):
            """Test a missing file yields the default"""
            store = JSONStore(self.store_path, [{"id": "a"}])
            self.assertEqual(store.load(), [{"id": "a"}])
            self.assertFalse(store.exists)

        def test_save_and_load(self):
            """Test saving and loading data"""
            store = JSONStore(self.store_path)
            store.save([{"name": "Alice"}])
            self.assertEqual(store.load(), [{"name": "Alice"}])

        def test_invalid_json_raises_error(self):
            """Test invalid JSON raises error"""
            with open(self.store_path, 'w') as f:
                f.write("{invalid json}")

            store = JSONStore(self.store_path)
            with self.assertRaises(JSONStoreFormatError):
                store.load()

    unittest.main()
