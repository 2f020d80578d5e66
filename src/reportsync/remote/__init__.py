"""
Remote document stores.

Usage:
    from reportsync.remote import create_store

    async with create_store(config.remote) as store:
        objects = await store.list_folder(folder_id, ".json")
"""

from reportsync.remote.base import RemoteStore
from reportsync.remote.drive import DriveStore
from reportsync.remote.filesystem import FilesystemStore
from reportsync.remote.manager import create_store
from reportsync.remote.memory import MemoryStore

__all__ = [
    "RemoteStore",
    "DriveStore",
    "FilesystemStore",
    "MemoryStore",
    "create_store",
]
