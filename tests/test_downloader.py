"""
Tests for the stable downloader state machine.

A fake clock replaces asyncio.sleep so retries and stabilization polls run
instantly and their delays can be asserted.
"""

import json

import pytest

from reportsync.exceptions import DownloadError, TransientFailure
from reportsync.remote.memory import MemoryStore
from reportsync.sync.downloader import DownloadPolicy, DownloadState, StableDownloader


class FakeClock:
    def __init__(self):
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


def json_payload(size: int) -> bytes:
    """A valid JSON document of exactly `size` bytes."""
    prefix, suffix = b'{"pad": "', b'"}'
    return prefix + b"x" * (size - len(prefix) - len(suffix)) + suffix


POLICY = DownloadPolicy(max_attempts=3, base_delay=0.5, poll_interval=0.01, max_polls=5)


def retry_delays(clock: FakeClock) -> list[float]:
    return [s for s in clock.sleeps if s != POLICY.poll_interval]


@pytest.fixture
def store():
    store = MemoryStore(chunk_size=512)
    store.add_folder("root", "data", folder_id="data")
    return store


class TestStableDownload:
    """Happy paths."""

    @pytest.mark.asyncio
    async def test_stable_download_4096(self, store, tmp_path):
        payload = json_payload(4096)
        store.add_object("data", "r.json", payload, object_id="r")
        clock = FakeClock()
        downloader = StableDownloader(store, POLICY, sleep=clock.sleep)

        result = await downloader.download("r", tmp_path / "r.json")

        assert result.attempts == 1
        assert result.size == 4096
        assert result.history[0].state is DownloadState.DONE
        assert (tmp_path / "r.json").read_bytes() == payload
        assert result.data == json.loads(payload)
        # Two polls: first sees 4096, second confirms it
        assert clock.sleeps == [POLICY.poll_interval, POLICY.poll_interval]

    @pytest.mark.asyncio
    async def test_corrupt_then_success(self, store, tmp_path):
        good = json_payload(2048)
        bad = b"{" + b"x" * 2047
        store.add_object("data", "r.json", good, object_id="r")
        store.script_downloads("r", bad)
        clock = FakeClock()

        result = await StableDownloader(store, POLICY, sleep=clock.sleep).download("r", tmp_path / "r.json")

        assert result.attempts == 2
        assert [h.state for h in result.history] == [DownloadState.CORRUPT, DownloadState.DONE]
        assert [h.size for h in result.history] == [2048, 2048]
        assert retry_delays(clock) == [0.5]
        assert (tmp_path / "r.json").read_bytes() == good

    @pytest.mark.asyncio
    async def test_transient_stream_error_then_success(self, store, tmp_path):
        store.add_object("data", "r.json", b'{"ok": true}', object_id="r")
        store.script_downloads("r", TransientFailure("connection reset"))

        result = await StableDownloader(store, POLICY, sleep=FakeClock().sleep).download("r", tmp_path / "r.json")

        assert result.attempts == 2
        assert result.history[0].state is DownloadState.TRANSIENT_FAILURE
        assert result.history[0].error == "connection reset"
        assert result.data == {"ok": True}
        assert store.download_calls == ["r", "r"]

    @pytest.mark.asyncio
    async def test_creates_destination_directory(self, store, tmp_path):
        store.add_object("data", "r.json", b"[]", object_id="r")
        dest = tmp_path / "nested" / "data" / "r.json"
        await StableDownloader(store, POLICY, sleep=FakeClock().sleep).download("r", dest)
        assert dest.read_bytes() == b"[]"


class TestRetryExhaustion:
    """Terminal failures."""

    @pytest.mark.asyncio
    async def test_always_corrupt(self, store, tmp_path):
        store.add_object("data", "r.json", b"{not json", object_id="r")
        clock = FakeClock()
        dest = tmp_path / "r.json"

        with pytest.raises(DownloadError) as exc_info:
            await StableDownloader(store, POLICY, sleep=clock.sleep).download("r", dest)

        assert exc_info.value.attempts == 3
        assert exc_info.value.path == dest
        assert str(dest) in str(exc_info.value)
        assert "after 3 attempts" in str(exc_info.value)
        # Linear backoff: attempt_index * base_delay
        assert retry_delays(clock) == [0.5, 1.0]
        assert store.download_calls == ["r", "r", "r"]

    @pytest.mark.asyncio
    async def test_missing_object(self, store, tmp_path):
        with pytest.raises(DownloadError):
            await StableDownloader(store, POLICY, sleep=FakeClock().sleep).download("ghost", tmp_path / "g.json")

    @pytest.mark.asyncio
    async def test_empty_file_never_stabilizes(self, store, tmp_path):
        store.add_object("data", "r.json", b"", object_id="r")
        policy = DownloadPolicy(max_attempts=1, poll_interval=0.01, max_polls=4)

        with pytest.raises(DownloadError) as exc_info:
            await StableDownloader(store, policy, sleep=FakeClock().sleep).download("r", tmp_path / "r.json")

        assert "never stabilized" in exc_info.value.last_error


class TestStabilization:
    """The STABILIZING state in isolation, with a fake disk."""

    @pytest.mark.asyncio
    async def test_growing_file_never_stabilizes(self, store, tmp_path):
        sizes = iter(range(100, 10_000, 100))
        downloader = StableDownloader(store, POLICY, sleep=FakeClock().sleep, stat_size=lambda p: next(sizes))
        assert await downloader.wait_until_stable(tmp_path / "r.json") is None

    @pytest.mark.asyncio
    async def test_stabilizes_after_growth(self, store, tmp_path):
        sizes = iter([0, 512, 1024, 1024])
        clock = FakeClock()
        downloader = StableDownloader(store, POLICY, sleep=clock.sleep, stat_size=lambda p: next(sizes))
        assert await downloader.wait_until_stable(tmp_path / "r.json") == 1024
        assert len(clock.sleeps) == 4

    @pytest.mark.asyncio
    async def test_zero_sizes_do_not_count(self, store, tmp_path):
        downloader = StableDownloader(store, POLICY, sleep=FakeClock().sleep, stat_size=lambda p: 0)
        assert await downloader.wait_until_stable(tmp_path / "r.json") is None

    @pytest.mark.asyncio
    async def test_attempt_reports_transient_when_unstable(self, store, tmp_path):
        store.add_object("data", "r.json", b"{}", object_id="r")
        sizes = iter(range(1, 100))
        downloader = StableDownloader(store, POLICY, sleep=FakeClock().sleep, stat_size=lambda p: next(sizes))
        record, data = await downloader.run_attempt("r", tmp_path / "r.json", attempt=2)
        assert record.attempt == 2
        assert record.state is DownloadState.TRANSIENT_FAILURE
        assert data is None


class TestDownloadPolicy:
    """Tests for DownloadPolicy."""

    def test_defaults(self):
        policy = DownloadPolicy()
        assert (policy.max_attempts, policy.base_delay, policy.poll_interval, policy.max_polls) == (3, 0.5, 0.15, 25)

    def test_linear_delay(self):
        policy = DownloadPolicy(base_delay=0.5)
        assert [policy.get_delay(n) for n in (1, 2, 3)] == [0.5, 1.0, 1.5]

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay": -1}, {"poll_interval": -0.1}, {"max_polls": 1}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            DownloadPolicy(**kwargs)

    def test_from_dict(self):
        policy = DownloadPolicy.from_dict({"max_attempts": "5", "base_delay": 1})
        assert policy.max_attempts == 5
        assert policy.base_delay == 1.0
        assert policy.max_polls == 25

    def test_state_finality(self):
        assert DownloadState.DONE.is_final
        assert DownloadState.CORRUPT.is_final
        assert not DownloadState.STABILIZING.is_final
