"""Local filesystem object store implementation."""

from __future__ import annotations

import asyncio
import pathlib  # noqa: TC003 - used at runtime for Path operations

import structlog

from dealtracker.exceptions import StorageError
from dealtracker.storage.object_store import ObjectStore

logger = structlog.get_logger(__name__)


class LocalObjectStore(ObjectStore):
    """Object store backed by local filesystem with path traversal protection."""

    def __init__(self, base_dir: pathlib.Path) -> None:
        self._base = base_dir.resolve()
        self._base.mkdir(parents=True, exist_ok=True)

    def _resolve_path(self, key: str) -> pathlib.Path:
        """Resolve key to absolute path, refusing anything outside the base dir."""
        path = (self._base / key).resolve()
        if not path.is_relative_to(self._base):
            msg = f"Path traversal detected: {key}"
            raise StorageError(msg)
        return path

    async def put(self, key: str, data: bytes) -> None:
        """Write data to local file."""
        path = self._resolve_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc
        logger.debug("local_store_put", key=key, size=len(data))

    async def get(self, key: str) -> bytes | None:
        """Read data from local file."""
        path = self._resolve_path(key)
        if not path.is_file():
            return None
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, key: str) -> None:
        """Delete a single file; missing keys are ignored."""
        path = self._resolve_path(key)
        if path.is_file():
            await asyncio.to_thread(path.unlink)
            logger.debug("local_store_delete", key=key)

    async def list_keys(self, prefix: str = "") -> list[str]:
        """List all file keys under a prefix."""
        base = self._resolve_path(prefix) if prefix else self._base
        if not base.exists():
            return []

        def _list() -> list[str]:
            return sorted(
                f.relative_to(self._base).as_posix() for f in base.rglob("*") if f.is_file()
            )

        return await asyncio.to_thread(_list)
