"""Models for the artifact history.

Defines the persisted history record and the summaries returned by bulk history operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from dataclasses_json import DataClassJsonMixin, dataclass_json

__all__: list[str] = ["ClearSummary", "ExportSummary", "HistoryItem", "ItemFailure"]


@dataclass_json
@dataclass(frozen=True)
class HistoryItem(DataClassJsonMixin):
    """A generated artifact as shown in the history.

    Attributes:
        id (str): Unique identifier generated when the record is created.
        name (str): Final segment of ``path``.
        path (str): Absolute location of the artifact.
        size (int): Size in bytes when the record was created.
        time (int): Creation timestamp in epoch milliseconds.
    """

    id: str
    name: str
    path: str
    size: int
    time: int

    @property
    def file_path(self) -> Path:
        return Path(self.path)

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.time / 1000, tz=UTC)


@dataclass(frozen=True)
class ItemFailure:
    """Per-item failure collected by a bulk operation."""

    item: HistoryItem
    error: Exception

    def __str__(self) -> str:
        return f"{self.item.name}: {self.error}"


@dataclass
class ExportSummary:
    """Outcome of exporting several history items.

    Attributes:
        success_count (int): Items copied successfully.
        failures (list[ItemFailure]): Items that could not be copied.
    """

    success_count: int = 0
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + len(self.failures)


@dataclass
class ClearSummary:
    """Outcome of clearing the history.

    Attributes:
        removed_records (int): Records removed from the history (always all of them).
        deleted_files (int): Artifacts deleted from disk.
        failures (list[ItemFailure]): Artifacts that could not be deleted.
    """

    removed_records: int = 0
    deleted_files: int = 0
    failures: list[ItemFailure] = field(default_factory=list)
