"""
Local directory tree used as a remote store.

Useful for shared network mounts and for running the pipeline end to end
without Drive credentials. Folder and object ids are POSIX paths relative to
the store root ("" is the root itself). Tombstoned objects are moved under
``<root>/.trash/``.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import AsyncIterator
from pathlib import Path, PurePosixPath
from typing import Any

import aiofiles

from reportsync.exceptions import RemoteNotFoundError, RemoteStoreError, TransientFailure
from reportsync.remote.base import RemoteStore
from reportsync.sync.types import JSON_MIME_TYPE, PDF_MIME_TYPE, RemoteObject, UploadResult, mtime_to_datetime
from reportsync.utils.hashing import calculate_file_hash_async
from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.remote.filesystem")

TRASH_DIR = ".trash"
CHUNK_SIZE = 64 * 1024

_MIME_BY_SUFFIX = {".json": JSON_MIME_TYPE, ".pdf": PDF_MIME_TYPE}


class FilesystemStore(RemoteStore):
    """Remote store backed by a local directory tree."""

    name = "filesystem"

    def __init__(self, root_path: str | Path, config: dict[str, Any] | None = None):
        self.config = config or {}
        self.root_path = Path(root_path)

    def _resolve(self, object_id: str) -> Path:
        """Map an id to a path, refusing anything that escapes the root."""
        root = self.root_path.resolve()
        full = (root / PurePosixPath(object_id)).resolve() if object_id else root
        try:
            full.relative_to(root)
        except ValueError as e:
            raise RemoteStoreError(f"Path traversal detected: '{object_id}' escapes {self.root_path}") from e
        return full

    def _id_for(self, path: Path) -> str:
        return path.resolve().relative_to(self.root_path.resolve()).as_posix()

    async def list_folder(self, parent_id: str, name_filter: str | None = None) -> list[RemoteObject]:
        folder = self._resolve(parent_id)
        if not folder.is_dir():
            raise RemoteNotFoundError(f"Folder '{parent_id}' not found", parent_id=parent_id)

        objects = []
        for entry in sorted(folder.iterdir()):
            if not entry.is_file() or entry.name.endswith(".part"):
                continue
            if name_filter is not None and name_filter not in entry.name:
                continue
            objects.append(
                RemoteObject(
                    id=self._id_for(entry),
                    name=entry.name,
                    mime_type=_MIME_BY_SUFFIX.get(entry.suffix.lower(), "application/octet-stream"),
                    modified_at=mtime_to_datetime(entry.stat().st_mtime),
                    digest=await calculate_file_hash_async(entry),
                    parent_id=parent_id,
                )
            )
        return objects

    async def get_folder(self, parent_id: str, name: str) -> str:
        # Folder names are single path components
        if name in ("", ".", "..", TRASH_DIR) or "/" in name or "\\" in name:
            raise RemoteNotFoundError(f"Folder '{name}' not found under '{parent_id or '/'}'", parent_id=parent_id, name=name)
        folder = self._resolve((PurePosixPath(parent_id) / name).as_posix())
        if not folder.is_dir():
            raise RemoteNotFoundError(f"Folder '{name}' not found under '{parent_id or '/'}'", parent_id=parent_id, name=name)
        return self._id_for(folder)

    async def download_stream(self, object_id: str) -> AsyncIterator[bytes]:
        path = self._resolve(object_id)
        if not path.is_file():
            raise RemoteNotFoundError(f"Object '{object_id}' not found")
        try:
            async with aiofiles.open(path, "rb") as f:
                while True:
                    chunk = await f.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except OSError as e:
            raise TransientFailure(f"Error reading {object_id}: {e}") from e

    async def tombstone(self, object_id: str) -> None:
        path = self._resolve(object_id)
        if not path.is_file():
            raise RemoteNotFoundError(f"Object '{object_id}' not found")
        trash = self.root_path / TRASH_DIR / PurePosixPath(object_id).parent
        trash.mkdir(parents=True, exist_ok=True)
        target = trash / path.name
        counter = 1
        while target.exists():
            target = trash / f"{path.name}.{counter}"
            counter += 1
        try:
            shutil.move(str(path), str(target))
        except OSError as e:
            raise RemoteStoreError(f"Could not trash {object_id}: {e}") from e
        logger.debug(f"Trashed {object_id} -> {target}")

    async def upload(self, local_path: Path, dest_folder_id: str, mime_type: str) -> UploadResult:
        folder = self._resolve(dest_folder_id)
        if not folder.is_dir():
            raise RemoteNotFoundError(f"Folder '{dest_folder_id}' not found", parent_id=dest_folder_id)
        target = folder / Path(local_path).name
        tmp = target.with_name(target.name + ".part")
        try:
            shutil.copy2(local_path, tmp)
            os.replace(tmp, target)
        except OSError as e:
            raise TransientFailure(f"Could not upload {local_path}: {e}") from e
        return UploadResult(id=self._id_for(target), link=target.resolve().as_uri())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(root_path='{self.root_path}')"
