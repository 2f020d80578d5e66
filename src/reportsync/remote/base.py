"""
Remote store interface.

The pipeline only talks to the remote document store through this
interface. Implementations: Google Drive (aiohttp), a local directory tree,
and an in-memory store for tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from reportsync.sync.types import RemoteObject, UploadResult


class RemoteStore(ABC):
    """
    Abstract base class for remote document stores.

    Stores are async context managers:

        async with create_store(config) as store:
            folder_id = await store.get_folder(root_id, "data")
            objects = await store.list_folder(folder_id, ".json")
    """

    name: str = "remote"

    @abstractmethod
    async def list_folder(self, parent_id: str, name_filter: str | None = None) -> list[RemoteObject]:
        """
        List the non-folder objects directly under a folder.

        Args:
            parent_id: Folder identifier
            name_filter: Optional substring the object name must contain
        """
        ...

    @abstractmethod
    async def get_folder(self, parent_id: str, name: str) -> str:
        """
        Find a child folder by name.

        Raises:
            RemoteNotFoundError: if no folder with that name exists under parent_id
        """
        ...

    @abstractmethod
    def download_stream(self, object_id: str) -> AsyncIterator[bytes]:
        """Stream an object's bytes."""
        ...

    @abstractmethod
    async def tombstone(self, object_id: str) -> None:
        """Mark an object for removal (trash), not a hard delete."""
        ...

    @abstractmethod
    async def upload(self, local_path: Path, dest_folder_id: str, mime_type: str) -> UploadResult:
        """Upload a local file into a folder."""
        ...

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self) -> RemoteStore:
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
