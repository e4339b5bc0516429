from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from core import file_access as file_access_module
from core.file_access import LocalFileAccess
from utils.errors import ArtifactMissingError, IOOperationError

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def files() -> LocalFileAccess:
    return LocalFileAccess()


@pytest.mark.asyncio
async def test_write_artifact_creates_parents_and_replaces(files: LocalFileAccess, tmp_path: Path) -> None:
    target = tmp_path / "temp_audio" / "audio_1.mp3"

    await files.write_artifact(target, b"first")
    await files.write_artifact(target, b"second!")

    assert target.read_bytes() == b"second!"
    assert await files.stat_size(target) == 7
    assert not (tmp_path / "temp_audio" / "audio_1.mp3.part").exists()


@pytest.mark.asyncio
async def test_failed_write_leaves_no_partial_file(files: LocalFileAccess, tmp_path: Path) -> None:
    # a non-empty directory in place of the target makes the final rename fail
    target = tmp_path / "audio.mp3"
    target.mkdir()
    (target / "keep").write_text("x")

    with pytest.raises(IOOperationError):
        await files.write_artifact(target, b"data")

    assert not (tmp_path / "audio.mp3.part").exists()


@pytest.mark.asyncio
async def test_stat_size_of_missing_file(files: LocalFileAccess, tmp_path: Path) -> None:
    with pytest.raises(ArtifactMissingError):
        await files.stat_size(tmp_path / "missing.mp3")


@pytest.mark.asyncio
async def test_copy(files: LocalFileAccess, tmp_path: Path) -> None:
    source = tmp_path / "a.mp3"
    source.write_bytes(b"audio")

    await files.copy(source, tmp_path / "b.mp3")

    assert (tmp_path / "b.mp3").read_bytes() == b"audio"
    assert source.exists()


@pytest.mark.asyncio
async def test_copy_missing_source(files: LocalFileAccess, tmp_path: Path) -> None:
    with pytest.raises(ArtifactMissingError):
        await files.copy(tmp_path / "missing.mp3", tmp_path / "b.mp3")


@pytest.mark.asyncio
async def test_copy_into_missing_directory(files: LocalFileAccess, tmp_path: Path) -> None:
    source = tmp_path / "a.mp3"
    source.write_bytes(b"audio")

    with pytest.raises(IOOperationError) as excinfo:
        await files.copy(source, tmp_path / "no" / "such" / "b.mp3")
    assert not isinstance(excinfo.value, ArtifactMissingError)


@pytest.mark.asyncio
async def test_delete(files: LocalFileAccess, tmp_path: Path) -> None:
    target = tmp_path / "a.mp3"
    target.write_bytes(b"audio")

    await files.delete(target)

    assert not target.exists()
    with pytest.raises(ArtifactMissingError):
        await files.delete(target)


@pytest.mark.asyncio
async def test_delete_refuses_directories(files: LocalFileAccess, tmp_path: Path) -> None:
    with pytest.raises(IOOperationError):
        await files.delete(tmp_path)


@pytest.mark.asyncio
async def test_ensure_directory(files: LocalFileAccess, tmp_path: Path) -> None:
    await files.ensure_directory(tmp_path / "a" / "b")
    await files.ensure_directory(tmp_path / "a" / "b")

    assert (tmp_path / "a" / "b").is_dir()


@pytest.mark.asyncio
async def test_reveal_missing_path_is_noop(
    files: LocalFileAccess, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    spawn = AsyncMock()
    monkeypatch.setattr(file_access_module.asyncio, "create_subprocess_exec", spawn)

    await files.reveal(tmp_path / "missing.mp3")

    spawn.assert_not_awaited()


@pytest.mark.asyncio
async def test_reveal_launches_file_manager(
    files: LocalFileAccess, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = tmp_path / "a.mp3"
    target.write_bytes(b"audio")
    spawn = AsyncMock()
    monkeypatch.setattr(file_access_module.asyncio, "create_subprocess_exec", spawn)
    monkeypatch.setattr(file_access_module.sys, "platform", "linux")

    await files.reveal(target)

    spawn.assert_awaited_once()
    assert spawn.await_args.args == ("xdg-open", str(tmp_path))


@pytest.mark.asyncio
async def test_reveal_without_file_manager(
    files: LocalFileAccess, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(file_access_module.asyncio, "create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError))

    with pytest.raises(IOOperationError):
        await files.reveal(tmp_path)
