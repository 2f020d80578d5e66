"""
Remote directory enumeration with duplicate collapsing.

Resolves the data folder under the configured root, lists its records and
tombstones older duplicates so callers never see two objects with the same
name.
"""

from __future__ import annotations

from collections.abc import Iterable

from reportsync.exceptions import RemoteStoreError
from reportsync.remote.base import RemoteStore
from reportsync.sync.types import RemoteObject
from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.sync.directory")


def select_survivors(objects: Iterable[RemoteObject]) -> tuple[list[RemoteObject], list[RemoteObject]]:
    """
    Collapse same-named objects to one survivor each.

    The survivor of a name group has the latest modified_at; ties go to the
    lexicographically smallest id. Survivors are returned in the listing
    order of each name's first appearance.

    Returns:
        (survivors, duplicates to tombstone)
    """
    groups: dict[str, list[RemoteObject]] = {}
    for obj in objects:
        groups.setdefault(obj.name, []).append(obj)

    survivors: list[RemoteObject] = []
    duplicates: list[RemoteObject] = []
    for group in groups.values():
        newest = max(group, key=lambda o: o.modified_at)
        tied = [o for o in group if o.modified_at == newest.modified_at]
        survivor = min(tied, key=lambda o: o.id)
        survivors.append(survivor)
        duplicates.extend(o for o in group if o is not survivor)
    return survivors, duplicates


class RemoteDirectory:
    """The data folder of one remote root."""

    def __init__(
        self,
        store: RemoteStore,
        root_folder_id: str,
        data_folder_name: str = "data",
        name_filter: str | None = ".json",
    ):
        self.store = store
        self.root_folder_id = root_folder_id
        self.data_folder_name = data_folder_name
        self.name_filter = name_filter
        self._data_folder_id: str | None = None

    async def resolve_data_folder(self) -> str:
        """
        Find the data folder directly under the root.

        Raises:
            RemoteNotFoundError: no such folder
        """
        if self._data_folder_id is None:
            self._data_folder_id = await self.store.get_folder(self.root_folder_id, self.data_folder_name)
            logger.debug(f"Resolved '{self.data_folder_name}' folder: {self._data_folder_id}")
        return self._data_folder_id

    async def list_records(self) -> list[RemoteObject]:
        """List the data folder, tombstoning older duplicates first."""
        folder_id = await self.resolve_data_folder()
        objects = await self.store.list_folder(folder_id, self.name_filter)
        survivors, duplicates = select_survivors(objects)

        if duplicates:
            await self._tombstone(duplicates)
        return survivors

    async def _tombstone(self, duplicates: list[RemoteObject]) -> None:
        trashed: dict[str, int] = {}
        for dup in duplicates:
            try:
                await self.store.tombstone(dup.id)
                trashed[dup.name] = trashed.get(dup.name, 0) + 1
            except RemoteStoreError as e:
                logger.warning(f"Could not trash duplicate {dup.name} ({dup.id}): {e}")
        for name, count in trashed.items():
            logger.info(f"Trashed {count} older duplicate(s) of {name}")
