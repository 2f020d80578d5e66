"""
One synchronization pass: remote records -> local working set -> validation
-> artifact generation -> upload.

Per-record failures are recorded in the pass summary and never abort the
pass. Only a missing data folder (RemoteNotFoundError) propagates.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from reportsync.config.settings import SyncSettings
from reportsync.exceptions import CorruptRecordError, ReportSyncError, ValidationFailure
from reportsync.generation import ArtifactGenerator
from reportsync.remote.base import RemoteStore
from reportsync.sync.change_detector import decide_sync
from reportsync.sync.directory import RemoteDirectory
from reportsync.sync.downloader import StableDownloader
from reportsync.sync.manifest import JsonManifest
from reportsync.sync.types import (
    ArtifactRecord,
    LocalRecord,
    ObjectError,
    ObjectOutcome,
    OutcomeStatus,
    PlannedItem,
    RemoteObject,
    SyncDecision,
    SyncSummary,
)
from reportsync.sync.uploader import StoreUploader
from reportsync.utils.logging import get_logger
from reportsync.validation.runner import log_report
from reportsync.validation.validator import TieredValidator

logger = get_logger("reportsync.sync.orchestrator")


def _load_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (UnicodeDecodeError, ValueError) as e:
        raise CorruptRecordError(path, str(e)) from e


def is_plain_name(name: str) -> bool:
    """True when `name` can only live directly inside the local directory."""
    if name in ("", ".", ".."):
        return False
    return "/" not in name and "\\" not in name and "\x00" not in name


class SyncOrchestrator:
    """
    Runs synchronization passes against one remote store.

    Example:
        async with create_store(config.remote) as store:
            orchestrator = SyncOrchestrator(
                store,
                settings,
                generator=CommandGenerator(["node", "scripts/generate-report.js"]),
                uploader=StoreUploader(store, settings.artifact_folder_id, settings.source_folder_id),
            )
            summary = await orchestrator.run_pass()
    """

    def __init__(
        self,
        store: RemoteStore,
        settings: SyncSettings,
        *,
        generator: ArtifactGenerator,
        validator: TieredValidator | None = None,
        uploader: StoreUploader | None = None,
        manifest: JsonManifest | None = None,
        downloader: StableDownloader | None = None,
        directory: RemoteDirectory | None = None,
    ):
        self.store = store
        self.settings = settings
        self.generator = generator
        self.validator = validator or TieredValidator()
        self.uploader = uploader
        self.manifest = manifest
        self.downloader = downloader or StableDownloader(store, settings.download)
        self.directory = directory or RemoteDirectory(
            store, settings.root_folder_id, settings.data_folder, settings.name_filter
        )
        self._stop = asyncio.Event()

    def request_stop(self) -> None:
        """Stop after the records currently in flight; the rest of the pass is skipped."""
        if not self._stop.is_set():
            logger.warning("Stop requested; finishing records in progress")
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    # --- Planning ----------------------------------------------------------------

    async def scan_local(self) -> dict[str, LocalRecord]:
        """Index the local working set by record name."""
        local_dir = self.settings.local_dir
        if not local_dir.is_dir():
            return {}

        manifest_path = self.settings.manifest_path
        records: dict[str, LocalRecord] = {}
        for path in sorted(local_dir.glob("*.json")):
            if not path.is_file() or self.settings.name_filter not in path.name:
                continue
            if manifest_path is not None and path.resolve() == manifest_path.resolve():
                continue
            try:
                records[path.name] = await LocalRecord.from_path(path)
            except OSError as e:
                logger.warning(f"Could not read local file {path.name}: {e}")
        return records

    async def plan(
        self, remote_objects: list[RemoteObject], local_records: dict[str, LocalRecord] | None = None
    ) -> list[PlannedItem]:
        """
        Decide what to do with every remote record and every local-only record.

        Remote records come first, in listing order, then local-only records
        by name.
        """
        if local_records is None:
            local_records = await self.scan_local()
        local_dir = self.settings.local_dir
        items: list[PlannedItem] = []

        for obj in remote_objects:
            if not is_plain_name(obj.name):
                logger.warning(f"Remote record name {obj.name!r} is not a plain file name; not syncing it")
                items.append(
                    PlannedItem(
                        obj.name,
                        SyncDecision.ERROR,
                        local_dir,
                        remote=obj,
                        reason=f"Remote name {obj.name!r} is not a plain file name",
                    )
                )
                continue
            local = local_records.get(obj.name)
            decision, reason = decide_sync(obj, local, self.settings.force)
            if decision is SyncDecision.SKIP_UNCHANGED and local is not None:
                try:
                    _load_json(local.path)
                except (CorruptRecordError, OSError) as e:
                    decision, reason = SyncDecision.DOWNLOAD, f"local copy unreadable ({e})"
            items.append(PlannedItem(obj.name, decision, local_dir / obj.name, remote=obj, reason=reason))

        remote_names = {obj.name for obj in remote_objects}
        for name, local in sorted(local_records.items()):
            if name in remote_names:
                continue
            try:
                _load_json(local.path)
            except (CorruptRecordError, OSError) as e:
                message = e.message if isinstance(e, CorruptRecordError) else str(e)
                items.append(PlannedItem(name, SyncDecision.ERROR, local.path, reason=message))
                continue
            items.append(PlannedItem(name, SyncDecision.LOCAL_ONLY, local.path, reason="not on remote"))

        return items

    # --- Execution ---------------------------------------------------------------

    async def run_pass(self) -> SyncSummary:
        """
        Run one complete synchronization pass.

        Raises:
            RemoteNotFoundError: the data folder does not exist under the root
        """
        summary = SyncSummary()
        remote_objects = await self.directory.list_records()
        items = await self.plan(remote_objects)

        if not items:
            logger.info("No remote or local records found; nothing to do")
            summary.finished_at = datetime.now(timezone.utc)
            return summary

        logger.info(f"Processing {len(items)} record(s) ({len(remote_objects)} remote)")
        semaphore = asyncio.Semaphore(self.settings.max_concurrent)

        async def worker(item: PlannedItem) -> ObjectOutcome | None:
            async with semaphore:
                if self._stop.is_set():
                    return None
                return await self.process(item)

        outcomes = await asyncio.gather(*(worker(item) for item in items))

        not_processed = 0
        for outcome in outcomes:
            if outcome is None:
                not_processed += 1
            else:
                summary.add(outcome)
        if not_processed:
            summary.cancelled = True
            logger.warning(f"Pass cancelled; {not_processed} record(s) not processed")

        summary.finished_at = datetime.now(timezone.utc)
        log_summary(summary)
        return summary

    async def process(self, item: PlannedItem) -> ObjectOutcome:
        """Carry out one planned decision. Never raises for record-level failures."""
        if item.decision is SyncDecision.SKIP_UNCHANGED:
            logger.info(f"Skipping {item.name} ({item.reason})")
            return ObjectOutcome(item.name, item.decision, OutcomeStatus.SKIPPED)
        if item.decision is SyncDecision.ERROR:
            logger.error(f"{item.name}: {item.reason}")
            return self._failed(item, "plan", item.reason)

        stage = "download"
        try:
            if item.decision is SyncDecision.DOWNLOAD and item.remote is not None:
                logger.info(f"Downloading {item.name} ({item.reason})")
                result = await self.downloader.download(item.remote.id, item.local_path)
                data = result.data
            else:
                stage = "load"
                logger.info(f"Processing local-only file: {item.name}")
                data = _load_json(item.local_path)

            stage = "validation"
            report = self.validator.validate(data, record_id=item.name)
            log_report(report)
            if not report.passed:
                raise ValidationFailure(report)

            stage = "generation"
            artifact_path = await self.generator.generate(item.local_path)
            logger.info(f"Artifact generated: {artifact_path}")

            link = None
            if self.uploader is not None:
                stage = "upload"
                uploaded = await self.uploader.upload_artifact(artifact_path)
                link = uploaded.link
                if item.decision is SyncDecision.LOCAL_ONLY:
                    await self.uploader.upload_source(item.local_path)
        except ReportSyncError as e:
            logger.error(f"{item.name} failed during {stage}: {e.message}")
            return self._failed(item, stage, e.message)
        except Exception as e:
            logger.error(f"{item.name} failed during {stage}: {e}")
            return self._failed(item, stage, str(e) or type(e).__name__)

        if self.manifest is not None:
            self.manifest.record(item.name)

        return ObjectOutcome(
            item.name,
            item.decision,
            OutcomeStatus.GENERATED,
            artifact=ArtifactRecord(item.name, artifact_path, link),
            warnings=len(report.warnings),
        )

    @staticmethod
    def _failed(item: PlannedItem, stage: str, message: str) -> ObjectOutcome:
        return ObjectOutcome(
            item.name,
            item.decision,
            OutcomeStatus.ERROR,
            error=ObjectError(item.name, stage, message),
        )


def log_summary(summary: SyncSummary) -> None:
    logger.info(
        f"Summary: {summary.total} record(s), {summary.generated} generated, "
        f"{summary.skipped} skipped, {summary.errored} error(s) in {summary.duration_seconds:.1f}s"
    )
    for index, error in enumerate(summary.errors, start=1):
        logger.info(f" {index}. {error.name} [{error.stage}] {error.message}")
