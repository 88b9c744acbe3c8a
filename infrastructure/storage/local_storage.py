"""
Durable key-value storage for the client.

Plays the role a browser's localStorage plays for a web front-end: a flat
mapping of string keys to string values, one file per browser, surviving
process restarts.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

from utils.logging_config import get_logger


class LocalStorage:
    """
    JSON-file backed string store.

    Every mutation rewrites the whole file through a temporary file and an
    atomic rename, so readers see either the old or the new contents.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = get_logger(__name__)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Storage file {self.path} unreadable, treating as empty: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.warning(f"Storage file {self.path} does not hold an object, treating as empty")
            return {}

        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _write_all(self, data: Mapping[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(dict(data), handle, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        """Value stored under key, or None"""
        return self._read_all().get(key)

    def update(self, values: Optional[Mapping[str, str]] = None, remove: Iterable[str] = ()):
        """
        Apply several writes and removals in one durable write

        Args:
            values: Keys to set
            remove: Keys to delete (missing keys are ignored)
        """
        data = self._read_all()
        for key in remove:
            data.pop(key, None)
        for key, value in (values or {}).items():
            if not isinstance(value, str):
                raise TypeError(f"LocalStorage values must be strings, got {type(value).__name__} for '{key}'")
            data[key] = value
        self._write_all(data)
