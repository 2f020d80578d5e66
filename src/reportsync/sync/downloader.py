"""
Stable downloads of remote records.

Each attempt runs an explicit state machine:

    STREAMING -> STABILIZING -> VALIDATING -> DONE
                                           -> CORRUPT            (retry)
              -> TRANSIENT_FAILURE                               (retry)

A failed attempt re-streams the whole object (no partial resume). Attempts
are counted by a loop; the delay before attempt n+1 is ``n * base_delay``.
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import aiofiles
import aiohttp

from reportsync.exceptions import CorruptRecordError, DownloadError, RemoteStoreError
from reportsync.remote.base import RemoteStore
from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.sync.downloader")

# Errors during streaming/reading that make an attempt a TRANSIENT_FAILURE
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    RemoteStoreError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


class DownloadState(Enum):
    STREAMING = "streaming"
    STABILIZING = "stabilizing"
    VALIDATING = "validating"
    DONE = "done"
    CORRUPT = "corrupt"
    TRANSIENT_FAILURE = "transient_failure"

    @property
    def is_final(self) -> bool:
        return self in (DownloadState.DONE, DownloadState.CORRUPT, DownloadState.TRANSIENT_FAILURE)


@dataclass
class DownloadPolicy:
    """
    Retry and stabilization settings for StableDownloader.

    Examples:
        >>> policy = DownloadPolicy()                     # 3 attempts, 0.5s linear backoff
        >>> policy = DownloadPolicy(max_attempts=5, base_delay=1.0)
        >>> policy.get_delay(2)
        2.0
    """

    # Total attempts, including the first
    max_attempts: int = 3

    # Delay before attempt n+1 is n * base_delay (seconds)
    base_delay: float = 0.5

    # Interval between size polls while stabilizing (seconds)
    poll_interval: float = 0.15

    # Polls before giving up on stabilization
    max_polls: int = 25

    def __post_init__(self):
        """Validate configuration."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        if self.max_polls < 2:
            raise ValueError("max_polls must be >= 2 (stabilization needs two equal polls)")

    def get_delay(self, attempt: int) -> float:
        """Delay after failed attempt `attempt` (1-indexed), before the next one."""
        return attempt * self.base_delay

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DownloadPolicy:
        data = data or {}
        defaults = cls()
        return cls(
            max_attempts=int(data.get("max_attempts", defaults.max_attempts)),
            base_delay=float(data.get("base_delay", defaults.base_delay)),
            poll_interval=float(data.get("poll_interval", defaults.poll_interval)),
            max_polls=int(data.get("max_polls", defaults.max_polls)),
        )


@dataclass(frozen=True)
class AttemptRecord:
    """Final state of one download attempt."""

    attempt: int
    state: DownloadState
    size: int = 0
    error: str | None = None


@dataclass
class DownloadResult:
    """A completed download: the stabilized file and its parsed content."""

    path: Path
    attempts: int
    size: int
    data: Any
    history: list[AttemptRecord] = field(default_factory=list)


def _file_size(path: Path) -> int:
    return os.stat(path).st_size


class StableDownloader:
    """
    Download a remote object into a local path and confirm it is complete
    and parseable before handing it on.

    `sleep` and `stat_size` are injectable so tests can run the state machine
    against a fake clock and a fake disk.
    """

    def __init__(
        self,
        store: RemoteStore,
        policy: DownloadPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        stat_size: Callable[[Path], int] | None = None,
    ):
        self.store = store
        self.policy = policy or DownloadPolicy()
        self._sleep = sleep
        self._stat_size = stat_size or _file_size

    async def download(self, object_id: str, dest_path: Path) -> DownloadResult:
        """
        Download `object_id` into `dest_path`.

        Returns:
            DownloadResult once an attempt reaches DONE

        Raises:
            DownloadError: all attempts ended CORRUPT or TRANSIENT_FAILURE
        """
        dest_path = Path(dest_path)
        history: list[AttemptRecord] = []
        last_error: str | None = None

        for attempt in range(1, self.policy.max_attempts + 1):
            if attempt > 1:
                delay = self.policy.get_delay(attempt - 1)
                logger.info(f"Retrying {dest_path.name} in {delay:.2f}s (attempt {attempt}/{self.policy.max_attempts})")
                await self._sleep(delay)

            record, data = await self.run_attempt(object_id, dest_path, attempt)
            history.append(record)

            if record.state is DownloadState.DONE:
                logger.debug(f"Downloaded {dest_path.name} ({record.size} bytes, attempt {attempt})")
                return DownloadResult(path=dest_path, attempts=attempt, size=record.size, data=data, history=history)

            last_error = record.error
            logger.warning(f"Attempt {attempt} for {dest_path.name} ended {record.state.value}: {record.error}")

        raise DownloadError(dest_path, self.policy.max_attempts, last_error)

    async def run_attempt(self, object_id: str, dest_path: Path, attempt: int = 1) -> tuple[AttemptRecord, Any]:
        """Run one attempt through the state machine to a final state."""
        state = DownloadState.STREAMING
        size = 0
        data: Any = None
        error: str | None = None

        while not state.is_final:
            if state is DownloadState.STREAMING:
                try:
                    await self._stream(object_id, dest_path)
                    state = DownloadState.STABILIZING
                except TRANSIENT_ERRORS as e:
                    error = str(e) or type(e).__name__
                    state = DownloadState.TRANSIENT_FAILURE

            elif state is DownloadState.STABILIZING:
                stable_size = await self.wait_until_stable(dest_path)
                if stable_size is None:
                    error = f"{dest_path.name} never stabilized after {self.policy.max_polls} polls"
                    state = DownloadState.TRANSIENT_FAILURE
                else:
                    size = stable_size
                    state = DownloadState.VALIDATING

            elif state is DownloadState.VALIDATING:
                try:
                    data = await self._parse(dest_path)
                    state = DownloadState.DONE
                except CorruptRecordError as e:
                    error = e.reason
                    state = DownloadState.CORRUPT
                except OSError as e:
                    error = str(e)
                    state = DownloadState.TRANSIENT_FAILURE

        return AttemptRecord(attempt=attempt, state=state, size=size, error=error), data

    async def _stream(self, object_id: str, dest_path: Path) -> None:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(dest_path, "wb") as f:
            async for chunk in self.store.download_stream(object_id):
                await f.write(chunk)

    async def wait_until_stable(self, path: Path) -> int | None:
        """
        Poll the file size until two consecutive polls agree on a nonzero size.

        Returns:
            The stable size, or None if max_polls ran out first
        """
        previous: int | None = None
        for _ in range(self.policy.max_polls):
            await self._sleep(self.policy.poll_interval)
            try:
                current = self._stat_size(path)
            except OSError:
                current = 0
            if current > 0 and current == previous:
                return current
            previous = current
        return None

    async def _parse(self, path: Path) -> Any:
        async with aiofiles.open(path, "rb") as f:
            raw = await f.read()
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CorruptRecordError(path, str(e)) from e
