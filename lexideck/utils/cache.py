"""Local fallback caches holding single string blobs per key."""

from __future__ import annotations

import hashlib
import os
import threading
from pathlib import Path

from loguru import logger


def build_cache_filename(key: str) -> str:
    """Return a filesystem-safe, stable name for a cache key."""

    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
    return f"{digest}.json"


class MemoryFallbackCache:
    """Dict-backed cache for tests and ephemeral deployments."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._local: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._local.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._local[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._local.pop(key, None)

    def clear(self) -> None:
        """Reset the cache for test environments."""

        with self._lock:
            self._local.clear()


class FileFallbackCache:
    """Cache writing one file per key below ``base_path``.

    Reads that fail at the OS level behave like a missing entry. Writes go
    through a temporary file and an atomic rename so a crash never leaves a
    half-written blob behind.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        return self._base_path / build_cache_filename(key)

    def get(self, key: str) -> str | None:
        path = self._path(key)
        with self._lock:
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except OSError as exc:
                logger.warning("Fallback cache read failed", key=key, error=str(exc))
                return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        with self._lock:
            self._base_path.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)

    def remove(self, key: str) -> None:
        with self._lock:
            self._path(key).unlink(missing_ok=True)


__all__ = ["MemoryFallbackCache", "FileFallbackCache", "build_cache_filename"]
