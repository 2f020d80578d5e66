"""
Tests for artifact and source uploads.
"""

import pytest

from reportsync.exceptions import RemoteStoreError, UploadError
from reportsync.remote.memory import MemoryStore
from reportsync.sync.types import JSON_MIME_TYPE, PDF_MIME_TYPE
from reportsync.sync.uploader import StoreUploader


@pytest.fixture
def files(tmp_path):
    pdf = tmp_path / "a.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    source = tmp_path / "a.json"
    source.write_text("{}")
    return pdf, source


class TestStoreUploader:
    @pytest.mark.asyncio
    async def test_destinations_and_types(self, files):
        store = MemoryStore()
        uploader = StoreUploader(store, "out", "src")
        pdf, source = files

        artifact = await uploader.upload_artifact(pdf)
        await uploader.upload_source(source)

        assert store.uploads == [(pdf, "out", PDF_MIME_TYPE), (source, "src", JSON_MIME_TYPE)]
        assert artifact.link == f"memory://out/{artifact.id}"
        assert store.content_of(artifact.id) == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        store = MemoryStore()
        uploader = StoreUploader(store, "out", "src")
        with pytest.raises(UploadError, match="file does not exist"):
            await uploader.upload_artifact(tmp_path / "missing.pdf")
        assert store.uploads == []

    @pytest.mark.asyncio
    async def test_store_error_wrapped(self, files):
        store = MemoryStore()
        store.fail_upload = RemoteStoreError("HTTP 403: quota exceeded")
        uploader = StoreUploader(store, "out", "src")

        with pytest.raises(UploadError) as exc_info:
            await uploader.upload_artifact(files[0])

        assert str(exc_info.value) == "Upload of a.pdf failed: HTTP 403: quota exceeded"
        assert isinstance(exc_info.value.__cause__, RemoteStoreError)
