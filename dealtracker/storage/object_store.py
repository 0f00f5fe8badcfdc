"""Abstract object store interface for uploaded sales materials."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ObjectStore(ABC):
    """Abstract base class for object/blob storage.

    Keys are namespaced as ``{startup_id}/{material_id}/v{n}.{ext}``.
    """

    @abstractmethod
    async def put(self, key: str, data: bytes) -> None:
        """Store binary data at the given key."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Retrieve binary data by key. Returns None if not found."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the object at the given key."""

    @abstractmethod
    async def list_keys(self, prefix: str = "") -> list[str]:
        """List all keys matching the given prefix."""


def material_key(startup_id: str, material_id: str, version_number: int, file_name: str) -> str:
    """Build the storage path for one version of a material."""
    ext = file_name.rsplit(".", 1)[-1] if "." in file_name else "bin"
    return f"{startup_id}/{material_id}/v{version_number}.{ext}"


def create_object_store() -> ObjectStore:
    """Factory: create the appropriate ObjectStore based on settings."""
    from dealtracker.config.settings import get_settings

    settings = get_settings()
    if settings.storage_backend == "s3":
        from dealtracker.storage.s3_store import S3ObjectStore

        return S3ObjectStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            region=settings.s3_region,
        )

    from pathlib import Path

    from dealtracker.storage.local_store import LocalObjectStore

    return LocalObjectStore(base_dir=Path(settings.materials_dir).expanduser())
