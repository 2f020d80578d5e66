"""
In-memory remote store for testing.

Holds folders and objects in-process and lets tests inject failures
(failing downloads, corrupt payloads, failing tombstones or uploads).

Example:
    store = MemoryStore()
    data = store.add_folder("root", "data")
    store.add_object(data, "report.json", b'{"a": 1}')

    async with store:
        folder = await store.get_folder("root", "data")
        objects = await store.list_folder(folder, ".json")
"""

from __future__ import annotations

import itertools
from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path

from reportsync.exceptions import RemoteNotFoundError, RemoteStoreError
from reportsync.remote.base import RemoteStore
from reportsync.sync.types import JSON_MIME_TYPE, RemoteObject, UploadResult
from reportsync.utils.hashing import hash_bytes


@dataclass
class _StoredObject:
    meta: RemoteObject
    content: bytes
    # Payloads served (in order) before `content` on the next downloads
    pending_payloads: list[bytes | Exception] = field(default_factory=list)


class MemoryStore(RemoteStore):
    """
    In-memory remote store for tests and dry runs.

    Features:
    - No external dependencies
    - Trashed objects disappear from listings but stay inspectable
    - Per-object scripted download payloads/failures
    """

    name = "memory"

    def __init__(self, chunk_size: int = 1024):
        self.chunk_size = chunk_size
        self._objects: dict[str, _StoredObject] = {}
        self._folders: dict[str, tuple[str | None, str]] = {}
        self._ids = itertools.count(1)
        self.trashed: list[str] = []
        self.uploads: list[tuple[Path, str, str]] = []
        self.download_calls: list[str] = []
        self.fail_tombstone: set[str] = set()
        self.fail_upload: Exception | None = None

    # --- Test setup -----------------------------------------------------------

    def add_folder(self, parent_id: str | None, name: str, folder_id: str | None = None) -> str:
        folder_id = folder_id or f"folder-{next(self._ids)}"
        self._folders[folder_id] = (parent_id, name)
        return folder_id

    def add_object(
        self,
        parent_id: str,
        name: str,
        content: bytes,
        *,
        modified_at: datetime | None = None,
        object_id: str | None = None,
        mime_type: str = JSON_MIME_TYPE,
        with_digest: bool = True,
    ) -> RemoteObject:
        object_id = object_id or f"obj-{next(self._ids)}"
        meta = RemoteObject(
            id=object_id,
            name=name,
            mime_type=mime_type,
            modified_at=modified_at or datetime.now(timezone.utc),
            digest=hash_bytes(content) if with_digest else None,
            parent_id=parent_id,
        )
        self._objects[object_id] = _StoredObject(meta=meta, content=content)
        return meta

    def script_downloads(self, object_id: str, *payloads: bytes | Exception) -> None:
        """Serve these payloads (or raise these errors) on the next downloads."""
        self._objects[object_id].pending_payloads.extend(payloads)

    def content_of(self, object_id: str) -> bytes:
        return self._objects[object_id].content

    def objects_in(self, parent_id: str) -> list[RemoteObject]:
        """All live objects under a folder, including uploads."""
        return [o.meta for o in self._objects.values() if o.meta.parent_id == parent_id and o.meta.id not in self.trashed]

    # --- RemoteStore ------------------------------------------------------------

    async def list_folder(self, parent_id: str, name_filter: str | None = None) -> list[RemoteObject]:
        return [o for o in self.objects_in(parent_id) if name_filter is None or name_filter in o.name]

    async def get_folder(self, parent_id: str, name: str) -> str:
        for folder_id, (parent, folder_name) in self._folders.items():
            if parent == parent_id and folder_name == name:
                return folder_id
        raise RemoteNotFoundError(f"Folder '{name}' not found under {parent_id}", parent_id=parent_id, name=name)

    async def download_stream(self, object_id: str) -> AsyncIterator[bytes]:
        self.download_calls.append(object_id)
        stored = self._objects.get(object_id)
        if stored is None or object_id in self.trashed:
            raise RemoteNotFoundError(f"Object {object_id} not found")

        payload: bytes | Exception = stored.content
        if stored.pending_payloads:
            payload = stored.pending_payloads.pop(0)
        if isinstance(payload, Exception):
            raise payload

        for start in range(0, len(payload), self.chunk_size):
            yield payload[start : start + self.chunk_size]

    async def tombstone(self, object_id: str) -> None:
        if object_id in self.fail_tombstone:
            raise RemoteStoreError(f"Could not trash {object_id}")
        if object_id not in self._objects:
            raise RemoteNotFoundError(f"Object {object_id} not found")
        self.trashed.append(object_id)

    async def upload(self, local_path: Path, dest_folder_id: str, mime_type: str) -> UploadResult:
        if self.fail_upload is not None:
            raise self.fail_upload
        content = Path(local_path).read_bytes()
        meta = self.add_object(dest_folder_id, Path(local_path).name, content, mime_type=mime_type)
        self.uploads.append((Path(local_path), dest_folder_id, mime_type))
        return UploadResult(id=meta.id, link=f"memory://{dest_folder_id}/{meta.id}")

    def touch(self, object_id: str, modified_at: datetime, content: bytes | None = None) -> RemoteObject:
        """Replace an object's content/timestamp, as a remote edit would."""
        stored = self._objects[object_id]
        new_content = stored.content if content is None else content
        digest = hash_bytes(new_content) if stored.meta.digest is not None else None
        stored.meta = replace(stored.meta, modified_at=modified_at, digest=digest)
        stored.content = new_content
        return stored.meta
