"""
Change detection for remote records.

Decides whether a remote object needs downloading, given the local copy.
Priority: force flag, then content digests, then modification times.
"""

from reportsync.sync.types import LocalRecord, RemoteObject, SyncDecision


def decide_sync(remote: RemoteObject, local: LocalRecord | None, force: bool = False) -> tuple[SyncDecision, str]:
    """
    Compute the decision for one remote object.

    Args:
        remote: Remote object snapshot
        local: Local copy (None if there is none)
        force: Always download

    Returns:
        (decision, human-readable reason)
    """
    if force:
        return SyncDecision.DOWNLOAD, "forced"
    if local is None:
        return SyncDecision.DOWNLOAD, "no local copy"

    if remote.digest and local.digest:
        if remote.digest == local.digest:
            return SyncDecision.SKIP_UNCHANGED, "content digest matches"
        return SyncDecision.DOWNLOAD, "content digest differs"

    if local.modified_at >= remote.modified_at:
        return SyncDecision.SKIP_UNCHANGED, "local copy is not older than remote"
    return SyncDecision.DOWNLOAD, "remote is newer"
