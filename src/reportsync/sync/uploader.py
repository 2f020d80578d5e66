"""
Upload of generated artifacts and source records back to the remote store.
"""

from __future__ import annotations

from pathlib import Path

import aiohttp

from reportsync.exceptions import RemoteStoreError, UploadError
from reportsync.remote.base import RemoteStore
from reportsync.sync.types import JSON_MIME_TYPE, PDF_MIME_TYPE, UploadResult
from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.sync.uploader")


class StoreUploader:
    """Uploads artifacts and source records to their configured folders."""

    def __init__(self, store: RemoteStore, artifact_folder_id: str, source_folder_id: str):
        self.store = store
        self.artifact_folder_id = artifact_folder_id
        self.source_folder_id = source_folder_id

    async def upload_artifact(self, path: Path) -> UploadResult:
        return await self._upload(path, self.artifact_folder_id, PDF_MIME_TYPE)

    async def upload_source(self, path: Path) -> UploadResult:
        return await self._upload(path, self.source_folder_id, JSON_MIME_TYPE)

    async def _upload(self, path: Path, folder_id: str, mime_type: str) -> UploadResult:
        path = Path(path)
        if not path.is_file():
            raise UploadError(path, "file does not exist")
        try:
            result = await self.store.upload(path, folder_id, mime_type)
        except (RemoteStoreError, OSError, aiohttp.ClientError) as e:
            raise UploadError(path, str(e), cause=e) from e
        logger.info(f"Uploaded {path.name}" + (f": {result.link}" if result.link else ""))
        return result
