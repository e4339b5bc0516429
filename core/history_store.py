"""History of generated artifacts.

The history is an ordered collection, newest first, persisted as a single record that is rewritten
on every mutation. A mutation computes the new collection, persists it and only then makes it
visible in memory, so memory and storage never disagree after a call returns.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import TYPE_CHECKING, Any, Final

from models.history_models import ClearSummary, ExportSummary, HistoryItem, ItemFailure
from utils.errors import ArtifactMissingError, IOOperationError, ValidationError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable
    from pathlib import Path

    from core.file_access import Confirmer, FileAccess
    from core.state_storage import StateStorage
    from models.voice_models import ArtifactRef


__all__: list[str] = ["HistoryStore"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HISTORY_STATE_KEY: Final[str] = "history"


class HistoryStore:
    """Durable, newest-first list of generated artifacts.

    Args:
        storage (StateStorage): Database the history is persisted to.
        file_access (FileAccess): Performs copy, delete and reveal on the artifacts.
        confirmer (Confirmer): Asked before records are deleted.
        key (str): Record key in ``storage``.
    """

    def __init__(
        self,
        storage: StateStorage,
        file_access: FileAccess,
        confirmer: Confirmer,
        *,
        key: str = HISTORY_STATE_KEY,
    ) -> None:
        logger.debug("%s initializing", self.__class__.__name__)
        self.storage: StateStorage = storage
        self.file_access: FileAccess = file_access
        self.confirmer: Confirmer = confirmer
        self.key: str = key
        self._items: tuple[HistoryItem, ...] = ()
        self._lock = asyncio.Lock()

    @property
    def items(self) -> tuple[HistoryItem, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def load(self) -> tuple[HistoryItem, ...]:
        """Read the persisted history; malformed records are skipped.

        Raises:
            PersistenceError: If the database cannot be read.
        """
        record: Any = self.storage.load(self.key)
        if record is None:
            self._items = ()
            return self._items
        if not isinstance(record, list):
            logger.warning("Stored history is not a list and is ignored")
            self._items = ()
            return self._items

        items: list[HistoryItem] = []
        seen: set[str] = set()
        for entry in record:
            try:
                item = HistoryItem.from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError) as err:
                logger.warning("Skipping malformed history record %r: %s", entry, err)
                continue
            if item.id in seen:
                logger.warning("Skipping duplicate history record '%s'", item.id)
                continue
            seen.add(item.id)
            items.append(item)
        self._items = tuple(items)
        logger.info("History loaded: %d items", len(self._items))
        return self._items

    def get(self, item_id: str) -> HistoryItem:
        """Record with ``item_id``.

        Raises:
            ValidationError: If there is no such record.
        """
        for item in self._items:
            if item.id == item_id:
                return item
        msg = f"no history item with id '{item_id}'"
        raise ValidationError(msg, field="id")

    def total_size(self) -> int:
        return sum(item.size for item in self._items)

    def _commit(self, items: tuple[HistoryItem, ...]) -> None:
        """Persist ``items`` then make them current; must be called with the lock held."""
        self.storage.save(self.key, [item.to_dict() for item in items])
        self._items = items

    async def add(self, artifact: ArtifactRef) -> HistoryItem:
        """Record a new artifact at the top of the history.

        Raises:
            PersistenceError: If the history cannot be written; it is left unchanged.
        """
        item = HistoryItem(
            id=str(uuid.uuid4()),
            name=artifact.path.name,
            path=str(artifact.path),
            size=artifact.size,
            time=time.time_ns() // 1_000_000,
        )
        async with self._lock:
            self._commit((item, *self._items))
        logger.info("History item added: '%s' (%s)", item.name, item.id)
        return item

    async def export_one(self, item: HistoryItem, destination: Path) -> None:
        """Copy the artifact of ``item`` to ``destination``.

        Raises:
            ArtifactMissingError: If the artifact no longer exists.
            IOOperationError: If the copy fails. The record and the artifact are untouched.
        """
        await self.file_access.copy(item.file_path, destination)
        logger.info("Exported '%s' to '%s'", item.name, destination)

    async def export_all(self, destination_dir: Path, items: Iterable[HistoryItem] | None = None) -> ExportSummary:
        """Copy every item (the whole history by default) into ``destination_dir`` under its own name.

        Per-item failures are collected and do not stop the export.

        Raises:
            IOOperationError: If ``destination_dir`` cannot be created.
        """
        targets: list[HistoryItem] = list(self._items if items is None else items)
        summary = ExportSummary()
        if not targets:
            return summary

        await self.file_access.ensure_directory(destination_dir)
        for item in targets:
            try:
                await self.file_access.copy(item.file_path, destination_dir / item.name)
            except IOOperationError as err:
                logger.warning("Export of '%s' failed: %s", item.name, err)
                summary.failures.append(ItemFailure(item=item, error=err))
            else:
                summary.success_count += 1
        logger.info("Exported %d of %d items to '%s'", summary.success_count, summary.total, destination_dir)
        return summary

    async def delete_one(self, item_id: str) -> bool:
        """Delete the artifact of ``item_id`` and then its record, after confirmation.

        An artifact that is already gone does not keep the record alive.

        Returns:
            bool: False if the user declined, True once the record is removed.

        Raises:
            ValidationError: If there is no such record.
            IOOperationError: If the artifact could not be deleted; the record is kept.
            PersistenceError: If the history cannot be written.
        """
        item: HistoryItem = self.get(item_id)
        if not await self.confirmer.confirm(f"Delete '{item.name}' and its audio file?"):
            logger.info("Deletion of '%s' cancelled", item.name)
            return False

        try:
            await self.file_access.delete(item.file_path)
        except ArtifactMissingError as err:
            logger.warning("Artifact of '%s' was already gone: %s", item.name, err)

        async with self._lock:
            self._commit(tuple(entry for entry in self._items if entry.id != item_id))
        logger.info("History item deleted: '%s' (%s)", item.name, item.id)
        return True

    async def clear_all(self) -> ClearSummary | None:
        """Delete every artifact and empty the history, after confirmation.

        Deletion failures are collected; the history is emptied regardless.

        Returns:
            ClearSummary | None: None if the user declined.

        Raises:
            PersistenceError: If the empty history cannot be written.
        """
        if not self._items:
            return ClearSummary()
        if not await self.confirmer.confirm(f"Delete all {len(self._items)} history items and their audio files?"):
            logger.info("Clearing the history cancelled")
            return None

        async with self._lock:
            targets: tuple[HistoryItem, ...] = self._items
            summary = ClearSummary(removed_records=len(targets))
            for item in targets:
                try:
                    await self.file_access.delete(item.file_path)
                except IOOperationError as err:
                    logger.warning("Could not delete '%s': %s", item.path, err)
                    summary.failures.append(ItemFailure(item=item, error=err))
                else:
                    summary.deleted_files += 1
            self._commit(())
        logger.info(
            "History cleared: %d records, %d files deleted, %d failures",
            summary.removed_records,
            summary.deleted_files,
            len(summary.failures),
        )
        return summary

    async def open_location(self, item_id: str) -> None:
        """Reveal the artifact of ``item_id`` in the file manager.

        Raises:
            ValidationError: If there is no such record.
            IOOperationError: If the file manager could not be launched.
        """
        await self.file_access.reveal(self.get(item_id).file_path)
