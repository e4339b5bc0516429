from __future__ import annotations

import os
from pathlib import Path
from typing import Final

__all__: list[str] = [
    "FileInUseError",
    "FileMissingError",
    "FilePermissionError",
    "FileUtils",
    "FileUtilsError",
    "InvalidFileTypeError",
]

_SIZE_UNITS: Final[tuple[str, ...]] = ("B", "KB", "MB", "GB")


class FileUtils:
    """Path helpers and guarded file removal used by the file-access layer."""

    @staticmethod
    def check_file_status(file_path: Path) -> None:
        """Ensure ``file_path`` is an existing regular file.

        Raises:
            FileMissingError: If the file does not exist.
            InvalidFileTypeError: If the path is a directory or a symbolic link.
        """
        if file_path.is_symlink() or file_path.is_dir():
            msg = f"Invalid file type (directory or symbolic link): {file_path}"
            raise InvalidFileTypeError(msg)
        if not file_path.exists():
            msg = f"File does not exist: {file_path}"
            raise FileMissingError(msg)

    @staticmethod
    def remove(file_path: Path) -> None:
        """Remove a regular file after checking its status.

        Raises:
            FileMissingError: If the file does not exist.
            InvalidFileTypeError: If the path is a directory or a symbolic link.
            FileInUseError: If the OS refuses removal because the file is locked.
            FilePermissionError: If there are insufficient permissions to delete the file.
        """
        FileUtils.check_file_status(file_path)
        try:
            file_path.unlink()
        except FileNotFoundError as err:
            msg = f"File does not exist: {file_path}"
            raise FileMissingError(msg) from err
        except PermissionError as err:
            # Windows reports a locked file (e.g. open in a media player) as a permission error
            if os.name == "nt" and getattr(err, "winerror", None) == 32:
                msg = f"File is in use: {file_path}"
                raise FileInUseError(msg) from err
            msg = f"Insufficient permissions to delete the file: {file_path}"
            raise FilePermissionError(msg) from err

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Convert a user-supplied path to an absolute path.

        Environment variables and ``~`` are expanded, relative paths are anchored at the current
        working directory.

        Args:
            path (str | Path): The input path (e.g., "~/text2mp3/$PROFILE").
            strict (bool): Raise if the path does not exist.

        Returns:
            Path: Absolute path.
        """
        user_expanded: Path = Path(os.path.expandvars(str(path))).expanduser()
        if user_expanded.is_absolute():
            return user_expanded.resolve(strict=strict)
        return (Path.cwd() / user_expanded).resolve(strict=strict)

    @staticmethod
    def format_size(size: int) -> str:
        """Human readable byte count, two decimals at most (``1536`` -> ``"1.5 KB"``)."""
        if size <= 0:
            return "0 B"
        exponent: int = 0
        while size >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
            exponent += 1
        value: float = round(size / 1024**exponent, 2)
        return f"{value:g} {_SIZE_UNITS[exponent]}"


class FileUtilsError(Exception):
    """Custom exception for FileUtils-related errors."""


class FileMissingError(FileUtilsError):
    """Custom exception for file missing errors."""


class InvalidFileTypeError(FileUtilsError):
    """Custom exception for invalid file type errors."""


class FileInUseError(FileUtilsError):
    """Custom exception for file-in-use errors."""


class FilePermissionError(FileUtilsError):
    """Custom exception for file permission errors."""
