"""
Google Drive remote store (Drive REST API v3 over aiohttp).

Authentication is not handled here: pass an already-issued OAuth bearer
token, or an async token provider that returns one.

Example:
    async with DriveStore(access_token=token, drive_id=shared_drive) as store:
        data_folder = await store.get_folder(root_folder_id, "data")
        files = await store.list_folder(data_folder, ".json")
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Any

import aiofiles
import aiohttp

from reportsync.exceptions import RemoteNotFoundError, RemoteStoreError, TransientFailure
from reportsync.remote.base import RemoteStore
from reportsync.sync.types import FOLDER_MIME_TYPE, RemoteObject, UploadResult, parse_timestamp
from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.remote.drive")

API_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
FILE_FIELDS = "id, name, mimeType, modifiedTime, md5Checksum, parents"
CHUNK_SIZE = 64 * 1024


def _quote(value: str) -> str:
    """Escape a value for a Drive `q` string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def folder_query(parent_id: str, name: str) -> str:
    return (
        f"'{_quote(parent_id)}' in parents and mimeType='{FOLDER_MIME_TYPE}' "
        f"and name='{_quote(name)}' and trashed = false"
    )


def files_query(parent_id: str, name_filter: str | None = None) -> str:
    query = f"'{_quote(parent_id)}' in parents and mimeType != '{FOLDER_MIME_TYPE}' and trashed = false"
    if name_filter:
        query += f" and name contains '{_quote(name_filter)}'"
    return query


def to_remote_object(item: dict[str, Any], parent_id: str | None = None) -> RemoteObject:
    """Convert a Drive file resource into a RemoteObject."""
    parents = item.get("parents") or []
    return RemoteObject(
        id=item["id"],
        name=item.get("name", ""),
        mime_type=item.get("mimeType", ""),
        modified_at=parse_timestamp(item["modifiedTime"]),
        digest=item.get("md5Checksum"),
        parent_id=parents[0] if parents else parent_id,
    )


class DriveStore(RemoteStore):
    """
    Remote store on Google Drive, including shared drives.

    HTTP 404 maps to RemoteNotFoundError, 429/5xx and network errors to
    TransientFailure, and any other error status to RemoteStoreError.
    """

    name = "drive"

    def __init__(
        self,
        access_token: str | None = None,
        *,
        token_provider: Callable[[], Awaitable[str]] | None = None,
        drive_id: str | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout: int = 120,
        page_size: int = 100,
    ):
        """
        Initialize the Drive store.

        Args:
            access_token: Static OAuth bearer token
            token_provider: Async callable returning a fresh token (takes precedence)
            drive_id: Shared drive id to scope listings to (optional)
            session: Existing aiohttp session (not closed by this store)
            timeout: Request timeout in seconds
            page_size: Listing page size
        """
        if access_token is None and token_provider is None:
            raise ValueError("DriveStore requires an access_token or a token_provider")
        self.access_token = access_token
        self.token_provider = token_provider
        self.drive_id = drive_id
        self.timeout = timeout
        self.page_size = page_size
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def _headers(self) -> dict[str, str]:
        token = await self.token_provider() if self.token_provider is not None else self.access_token
        return {"Authorization": f"Bearer {token}"}

    def _list_params(self, query: str, fields: str) -> dict[str, str]:
        params = {
            "q": query,
            "fields": f"nextPageToken, files({fields})",
            "pageSize": str(self.page_size),
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        if self.drive_id:
            params["corpora"] = "drive"
            params["driveId"] = self.drive_id
        return params

    async def _check(self, response: Any, context: str) -> None:
        status = response.status
        if status < 400:
            return
        text = await response.text()
        message = f"{context}: HTTP {status} {text[:200]}"
        if status == 404:
            raise RemoteNotFoundError(message)
        if status == 429 or status >= 500:
            raise TransientFailure(message)
        raise RemoteStoreError(message, details={"status": status})

    async def _request_json(self, method: str, url: str, context: str, **kwargs: Any) -> dict[str, Any]:
        headers = {**(await self._headers()), **kwargs.pop("headers", {})}
        try:
            async with self._get_session().request(method, url, headers=headers, **kwargs) as response:
                await self._check(response, context)
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientFailure(f"{context}: {e}") from e

    async def _list_files(self, query: str, context: str) -> list[dict[str, Any]]:
        params = self._list_params(query, FILE_FIELDS)
        items: list[dict[str, Any]] = []
        while True:
            payload = await self._request_json("GET", API_URL, context, params=params)
            items.extend(payload.get("files") or [])
            page_token = payload.get("nextPageToken")
            if not page_token:
                return items
            params = {**params, "pageToken": page_token}

    async def list_folder(self, parent_id: str, name_filter: str | None = None) -> list[RemoteObject]:
        items = await self._list_files(files_query(parent_id, name_filter), f"Listing folder {parent_id}")
        return [to_remote_object(item, parent_id) for item in items]

    async def get_folder(self, parent_id: str, name: str) -> str:
        items = await self._list_files(folder_query(parent_id, name), f"Looking up folder '{name}'")
        if not items:
            raise RemoteNotFoundError(f"'{name}' folder not found under {parent_id}", parent_id=parent_id, name=name)
        if len(items) > 1:
            logger.debug(f"{len(items)} folders named '{name}' under {parent_id}, using {items[0]['id']}")
        return items[0]["id"]

    async def download_stream(self, object_id: str) -> AsyncIterator[bytes]:
        context = f"Downloading {object_id}"
        params = {"alt": "media", "supportsAllDrives": "true"}
        headers = await self._headers()
        try:
            async with self._get_session().request(
                "GET", f"{API_URL}/{object_id}", params=params, headers=headers
            ) as response:
                await self._check(response, context)
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientFailure(f"{context}: {e}") from e

    async def tombstone(self, object_id: str) -> None:
        await self._request_json(
            "PATCH",
            f"{API_URL}/{object_id}",
            f"Trashing {object_id}",
            params={"supportsAllDrives": "true"},
            json={"trashed": True},
        )

    async def upload(self, local_path: Path, dest_folder_id: str, mime_type: str) -> UploadResult:
        local_path = Path(local_path)
        async with aiofiles.open(local_path, "rb") as f:
            content = await f.read()

        with aiohttp.MultipartWriter("related") as writer:
            writer.append_json({"name": local_path.name, "parents": [dest_folder_id]})
            writer.append(content, {"Content-Type": mime_type})

        payload = await self._request_json(
            "POST",
            UPLOAD_URL,
            f"Uploading {local_path.name}",
            params={"uploadType": "multipart", "supportsAllDrives": "true", "fields": "id, webViewLink"},
            data=writer,
        )
        return UploadResult(id=payload["id"], link=payload.get("webViewLink"))

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
