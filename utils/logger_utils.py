"""Logging setup shared by every Text2MP3 module.

A single namespaced logger tree is configured once per process: terse console output for the user
and a detailed rotating log file for diagnostics. Registered secrets (proxy passwords) are masked
before any record reaches a handler.
"""

from __future__ import annotations

import logging
import sys
import warnings
from logging import Filter, Formatter, LogRecord, NullHandler, StreamHandler
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, ClassVar, Final, Literal, NamedTuple, Self, TextIO, TypeAlias

if TYPE_CHECKING:
    from pathlib import Path

__all__: list[str] = ["LoggerUtils"]

LevelType: TypeAlias = Literal[
    "NOTSET",
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

_LOG_FILE_SIZE: Final[int] = 2 * 1024 * 1024  # 2MB
_LOG_BACKUP_COUNT: Final[int] = 2
_MASK: Final[str] = "******"

DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
DEFAULT_NAMESPACE: Final[str] = "Text2MP3"


class LogLevel(NamedTuple):
    """Logging level as both name and numeric value."""

    name: str
    value: int


class _SecretMaskFilter(Filter):
    """Replace registered secret strings in the rendered message."""

    def __init__(self, secrets: set[str]) -> None:
        super().__init__()
        self._secrets: set[str] = secrets

    def filter(self, record: LogRecord) -> bool:
        if not self._secrets:
            return True
        message: str = record.getMessage()
        masked: str = message
        for secret in self._secrets:
            masked = masked.replace(secret, _MASK)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class LoggerUtils:
    """Singleton that configures console and file logging for the application.

    Attributes:
        _LOGGER_NAMESPACE (str): Namespace prefixed to every logger name.
        _configured (bool): Whether handlers have already been attached.
        _secrets (set[str]): Strings masked out of every log record.
    """

    _LOGGER_NAMESPACE: ClassVar[str] = DEFAULT_NAMESPACE
    _configured: ClassVar[bool] = False
    _instance: ClassVar[Self | None] = None
    _secrets: ClassVar[set[str]] = set()

    def __new__(cls, *args, **kwargs) -> Self:
        _ = args, kwargs
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, filename: str | Path, *, use_null_console: bool = False) -> None:
        """Attach handlers to the namespace root logger.

        Calling this again after the first successful configuration is a no-op.

        Args:
            filename (str | Path): Absolute path of the log file. Empty disables file logging.
            use_null_console (bool): Use a NullHandler instead of stderr output.
        """
        if LoggerUtils._configured:
            return

        self.root_logger: logging.Logger = logging.getLogger(self._LOGGER_NAMESPACE)
        self._use_null_console: bool = bool(use_null_console) or sys.stderr is None
        filename = str(filename)
        # handlers filter on their own level; the logger must let everything through to them
        self.root_logger.setLevel(DEFAULT_LOG_LEVEL)

        self._console_logging()
        if filename.strip():
            self._file_logging(filename)
        else:
            self.root_logger.info("Log file name is empty. Logging to the file is not performed.")

        warnings.showwarning = self.warning_to_log
        LoggerUtils._configured = True

    def warning_to_log(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        """Route ``warnings.warn`` output into the log (signature of ``warnings.showwarning``)."""
        _ = file, line
        self.root_logger.warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    @classmethod
    def register_secret(cls, secret: str | None) -> None:
        """Mask ``secret`` in every subsequent log record of the namespace."""
        if secret:
            cls._secrets.add(secret)

    def _console_logging(self) -> None:
        """Console output shows WARNING and above, message text only."""
        if self._use_null_console:
            if not self._has_handler(NullHandler):
                self.root_logger.addHandler(NullHandler())
            return

        if self._has_handler(StreamHandler):
            self.root_logger.warning("Console logging is already configured.")
            return

        console_handler: StreamHandler[TextIO] = StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(Formatter("%(message)s"))
        console_handler.addFilter(_SecretMaskFilter(LoggerUtils._secrets))
        self.root_logger.addHandler(console_handler)

    def _file_logging(self, filename: str) -> None:
        """Rotating UTF-8 log file with full context at DEBUG level."""
        if self._has_handler(RotatingFileHandler):
            self.root_logger.warning("File logging is already configured.")
            return

        try:
            file_handler = RotatingFileHandler(
                filename=filename,
                maxBytes=_LOG_FILE_SIZE,
                backupCount=_LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except (FileNotFoundError, PermissionError):
            self.root_logger.error("Incorrect log file name: %s\nLogging to the file is not performed.", filename)
            return

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            Formatter("%(asctime)s %(levelname)-8s %(process)5d %(lineno)4d %(name)-36s\t%(funcName)s\t%(message)s")
        )
        file_handler.addFilter(_SecretMaskFilter(LoggerUtils._secrets))
        self.root_logger.addHandler(file_handler)

    def _has_handler(self, handler_type: type) -> bool:
        return any(isinstance(h, handler_type) for h in self.root_logger.handlers)

    def set_level(self, level: LevelType) -> None:
        """Set the namespace level; unknown names fall back to INFO with a warning."""
        level_map: dict[str, int] = logging.getLevelNamesMapping()
        try:
            self.root_logger.setLevel(level_map[level.upper()])
        except KeyError:
            self.root_logger.setLevel(DEFAULT_LOG_LEVEL)
            self.root_logger.warning("Unknown logging level '%s' specified.\nLogging level set to 'INFO'.", level)

    def get_level(self) -> LogLevel:
        level_value: int = self.root_logger.getEffectiveLevel()
        return LogLevel(name=logging.getLevelName(level_value), value=level_value)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Return ``<namespace>.<name>``, or the namespace root when ``name`` is None."""
        if LoggerUtils._LOGGER_NAMESPACE:
            return logging.getLogger(
                f"{LoggerUtils._LOGGER_NAMESPACE}.{name}" if name else LoggerUtils._LOGGER_NAMESPACE
            )
        return logging.getLogger(name or None)
