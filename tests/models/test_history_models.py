from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from models.history_models import ClearSummary, ExportSummary, HistoryItem, ItemFailure
from utils.errors import IOOperationError


def _item() -> HistoryItem:
    return HistoryItem(id="abc", name="audio_1.mp3", path="/tmp/audio_1.mp3", size=2048, time=1_700_000_000_000)


def test_history_item_round_trips_through_json_record() -> None:
    item = _item()

    record = item.to_dict()

    assert record == {"id": "abc", "name": "audio_1.mp3", "path": "/tmp/audio_1.mp3", "size": 2048, "time": 1_700_000_000_000}
    assert HistoryItem.from_dict(record) == item


def test_history_item_derived_properties() -> None:
    item = _item()

    assert item.file_path == Path("/tmp/audio_1.mp3")
    assert item.created_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)


def test_summaries_count_failures() -> None:
    failure = ItemFailure(item=_item(), error=IOOperationError("Permission denied", path="/tmp/audio_1.mp3"))
    export = ExportSummary(success_count=2, failures=[failure])

    assert export.total == 3
    assert str(failure) == "audio_1.mp3: Permission denied: '/tmp/audio_1.mp3'"
    assert ClearSummary().failures == []
