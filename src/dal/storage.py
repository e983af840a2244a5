"""Durable key-value storage for database images and the saved-database library."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from dal.config import SessionConfig

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


@runtime_checkable
class KeyValueStore(Protocol):
    """Async byte store keyed by string."""

    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None when the key is absent."""
        ...

    async def put(self, key: str, value: bytes) -> None:
        """Store `value` under `key`, replacing any previous value."""
        ...

    async def delete(self, key: str) -> None:
        """Remove `key`; missing keys are ignored."""
        ...


class InMemoryKeyValueStore:
    """Process-local store, mostly for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    async def put(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileKeyValueStore:
    """One file per key under a directory; writes are atomic renames."""

    def __init__(self, directory: str | os.PathLike) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key:
            raise ValueError("Storage key must not be empty.")
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.bin"

    def _read(self, key: str) -> Optional[bytes]:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: bytes) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    async def get(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, key)

    async def put(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, bytes(value))

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)


def store_from_config(config: Optional[SessionConfig] = None) -> KeyValueStore:
    """Return a file store when a storage directory is configured, else in-memory."""
    config = config or SessionConfig.from_env()
    if config.storage_dir:
        logger.info(
            "storage_backend_selected",
            extra={"event": "storage_backend_selected", "backend": "file"},
        )
        return FileKeyValueStore(config.storage_dir)
    logger.info(
        "storage_backend_selected",
        extra={"event": "storage_backend_selected", "backend": "memory"},
    )
    return InMemoryKeyValueStore()
