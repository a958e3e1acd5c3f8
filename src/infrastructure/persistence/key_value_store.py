from __future__ import annotations

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from domain.errors import PersistenceError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class KeyValueStore(ABC):
    """Local-storage style capability: JSON values addressed by string keys."""

    @abstractmethod
    def load(self, key: str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._store: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str) -> Any | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Stored value for {key!r} is not valid JSON: {exc}") from exc

    def save(self, key: str, value: Any) -> None:
        try:
            self._store[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Value for {key!r} is not JSON serializable: {exc}") from exc

    def put_raw(self, key: str, raw: str) -> None:
        """Store text as-is, bypassing serialization (simulates a corrupted entry)."""
        self._store[key] = raw


class JsonFileKeyValueStore(KeyValueStore):
    """One ``<key>.json`` file per key under a data directory."""

    def __init__(self, data_dir: str | Path) -> None:
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise PersistenceError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def load(self, key: str) -> Any | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Unable to read {path}: {exc}") from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Stored value in {path} is not valid JSON: {exc}") from exc

    def save(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            payload = json.dumps(value, indent=2)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Value for {key!r} is not JSON serializable: {exc}") from exc
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write {path}: {exc}") from exc
        logger.debug("Saved key=%s bytes=%d path=%s", key, len(payload), path)
