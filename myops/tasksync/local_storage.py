"""JSON-file key/value storage used for DEMO data, the live cache and settings."""

from __future__ import annotations

import json
import logging
import os
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

MEMORY = ":memory:"


class LocalStorage:
    """Persist one JSON document per key inside a single file.

    Every read and write goes through the file so separate instances pointing
    at the same path observe each other. ``":memory:"`` (or ``None``) keeps the
    data in process, which is what the tests use. Read and write failures are
    logged and reported through return values rather than raised.
    """

    def __init__(self, path: str | Path | None = MEMORY) -> None:
        self._is_memory = path is None or str(path) == MEMORY
        self.path = None if self._is_memory else Path(path)
        self._memory: dict[str, Any] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def _read_all(self) -> dict[str, Any]:
        if self._is_memory:
            return self._memory
        assert self.path is not None
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        if self._is_memory:
            self._memory = data
            return
        assert self.path is not None
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    # ------------------------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the value stored under ``key``."""

        with self._lock:
            try:
                data = self._read_all()
            except (OSError, ValueError) as err:
                _LOGGER.error("Error reading local storage key %r: %s", key, err)
                return default
        if key not in data:
            return default
        return deepcopy(data[key])

    def set(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key``; returns ``False`` when the write failed."""

        with self._lock:
            try:
                data = dict(self._read_all())
            except (OSError, ValueError) as err:
                _LOGGER.warning("Replacing unreadable local storage at %s: %s", self.path, err)
                data = {}
            try:
                data[key] = json.loads(json.dumps(value))
                self._write_all(data)
            except (OSError, TypeError, ValueError) as err:
                _LOGGER.error("Error writing local storage key %r: %s", key, err)
                return False
        return True

    def remove(self, key: str) -> None:
        with self._lock:
            try:
                data = dict(self._read_all())
                if data.pop(key, None) is not None:
                    self._write_all(data)
            except (OSError, ValueError) as err:
                _LOGGER.error("Error removing local storage key %r: %s", key, err)

    def keys(self) -> list[str]:
        with self._lock:
            try:
                return sorted(self._read_all())
            except (OSError, ValueError):
                return []


__all__ = ["MEMORY", "LocalStorage"]
