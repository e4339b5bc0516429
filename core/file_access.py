"""File-system collaborator used by the orchestrator.

The orchestrator never touches artifact bytes itself; it goes through a ``FileAccess`` implementation.
``LocalFileAccess`` performs the operations on the local disk in worker threads so the event loop is
never blocked. Writes are atomic-or-absent: data goes to a temporary sibling first and is renamed
into place only once complete.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from utils.errors import ArtifactMissingError, IOOperationError
from utils.file_utils import FileMissingError, FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging


__all__: list[str] = ["Confirmer", "FileAccess", "LocalFileAccess"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

_PARTIAL_SUFFIX = ".part"


class FileAccess(Protocol):
    """Operations the orchestrator needs from the file system."""

    async def write_artifact(self, path: Path, data: bytes) -> None: ...

    async def stat_size(self, path: Path) -> int: ...

    async def copy(self, source: Path, destination: Path) -> None: ...

    async def delete(self, path: Path) -> None: ...

    async def ensure_directory(self, path: Path) -> None: ...

    async def reveal(self, path: Path) -> None: ...


class Confirmer(Protocol):
    """Asks the user to confirm a destructive operation."""

    async def confirm(self, prompt: str) -> bool: ...


class LocalFileAccess:
    """``FileAccess`` on the local disk.

    Every failure is raised as ``IOOperationError`` (``ArtifactMissingError`` when the file is gone).
    """

    async def write_artifact(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path`` atomically; an existing file is replaced.

        Raises:
            IOOperationError: If the file cannot be written. No partial file is left behind.
        """
        await asyncio.to_thread(self._write_atomic, path, data)
        logger.debug("Wrote %d bytes to '%s'", len(data), path)

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        partial: Path = path.with_name(path.name + _PARTIAL_SUFFIX)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with partial.open(mode="wb") as fhdl:
                fhdl.write(data)
                fhdl.flush()
                os.fsync(fhdl.fileno())
            partial.replace(path)
        except PermissionError as err:
            partial.unlink(missing_ok=True)
            msg = "Permission denied"
            raise IOOperationError(msg, path=path) from err
        except OSError as err:
            partial.unlink(missing_ok=True)
            msg = f"Could not write file ({err.strerror or err})"
            raise IOOperationError(msg, path=path) from err

    async def stat_size(self, path: Path) -> int:
        """Size of ``path`` in bytes.

        Raises:
            ArtifactMissingError: If the file does not exist.
            IOOperationError: If the file cannot be inspected.
        """
        try:
            stat: os.stat_result = await asyncio.to_thread(path.stat)
        except FileNotFoundError as err:
            msg = "File does not exist"
            raise ArtifactMissingError(msg, path=path) from err
        except OSError as err:
            msg = f"Could not read file size ({err.strerror or err})"
            raise IOOperationError(msg, path=path) from err
        return stat.st_size

    async def copy(self, source: Path, destination: Path) -> None:
        """Copy the bytes of ``source`` to ``destination`` (overwriting it).

        Raises:
            ArtifactMissingError: If ``source`` does not exist.
            IOOperationError: If the copy fails.
        """
        try:
            await asyncio.to_thread(shutil.copyfile, source, destination)
        except FileNotFoundError as err:
            if not source.exists():
                msg = "Source file does not exist"
                raise ArtifactMissingError(msg, path=source) from err
            msg = "Destination directory does not exist"
            raise IOOperationError(msg, path=destination) from err
        except shutil.SameFileError as err:
            msg = "Source and destination are the same file"
            raise IOOperationError(msg, path=destination) from err
        except OSError as err:
            msg = f"Could not copy file ({err.strerror or err})"
            raise IOOperationError(msg, path=destination) from err
        logger.debug("Copied '%s' to '%s'", source, destination)

    async def delete(self, path: Path) -> None:
        """Delete the regular file ``path``.

        Raises:
            ArtifactMissingError: If the file does not exist.
            IOOperationError: If the path is not a regular file or cannot be removed.
        """
        try:
            await asyncio.to_thread(FileUtils.remove, path)
        except FileMissingError as err:
            raise ArtifactMissingError(str(err)) from err
        except FileUtilsError as err:
            raise IOOperationError(str(err)) from err
        except OSError as err:
            msg = f"Could not delete file ({err.strerror or err})"
            raise IOOperationError(msg, path=path) from err
        logger.debug("Deleted '%s'", path)

    async def ensure_directory(self, path: Path) -> None:
        """Create ``path`` and its parents if missing.

        Raises:
            IOOperationError: If the directory cannot be created.
        """
        try:
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        except OSError as err:
            msg = f"Could not create directory ({err.strerror or err})"
            raise IOOperationError(msg, path=path) from err

    async def reveal(self, path: Path) -> None:
        """Show ``path`` in the platform file manager; nothing happens if it does not exist.

        Raises:
            IOOperationError: If the file manager cannot be launched.
        """
        if not path.exists():
            logger.info("Not revealing missing path '%s'", path)
            return

        args: list[str]
        if sys.platform == "win32":
            args = ["explorer", f"/select,{path}"]
        elif sys.platform == "darwin":
            args = ["open", "-R", str(path)]
        else:
            args = ["xdg-open", str(path.parent if path.is_file() else path)]

        try:
            process: asyncio.subprocess.Process = await asyncio.create_subprocess_exec(
                *args, stdout=asyncio.subprocess.DEVNULL, stderr=asyncio.subprocess.DEVNULL
            )
        except FileNotFoundError as err:
            msg = f"File manager '{args[0]}' not found"
            raise IOOperationError(msg, path=path) from err
        except OSError as err:
            msg = f"Could not open the file manager ({err})"
            raise IOOperationError(msg, path=path) from err
        logger.debug("Started '%s' (pid %s) to reveal '%s'", args[0], process.pid, path)
