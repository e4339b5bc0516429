"""Exception taxonomy for Text2MP3 operations.

Every failure surfaced to a caller derives from ``Text2Mp3Error`` so that front-ends can report
it uniformly. None of these errors is fatal to the process; each is scoped to the operation that
raised it.
"""

from __future__ import annotations

from pathlib import Path

__all__: list[str] = [
    "ArtifactMissingError",
    "BatchItemError",
    "ConfigurationError",
    "IOOperationError",
    "JobInProgressError",
    "NetworkError",
    "NetworkTimeoutError",
    "PersistenceError",
    "Text2Mp3Error",
    "ValidationError",
]


class Text2Mp3Error(Exception):
    """Base class for all errors reported by the orchestrator."""


class ValidationError(Text2Mp3Error):
    """Input rejected before any work was attempted.

    Attributes:
        field (str | None): Name of the offending field, if one can be named.
    """

    def __init__(self, msg: str, *, field: str | None = None) -> None:
        self.field: str | None = field
        super().__init__(f"{field}: {msg}" if field else msg)


class ConfigurationError(ValidationError):
    """Proxy or application configuration does not allow the requested operation."""


class JobInProgressError(Text2Mp3Error):
    """A synthesis job was submitted while another one is still outstanding."""


class NetworkError(Text2Mp3Error):
    """The provider or the proxy could not be reached, or answered with an error.

    Attributes:
        cause (BaseException | None): Underlying transport error.
    """

    def __init__(self, msg: str, *, cause: BaseException | None = None) -> None:
        self.cause: BaseException | None = cause
        super().__init__(f"{msg}: {cause}" if cause is not None else msg)


class NetworkTimeoutError(NetworkError):
    """A network operation did not finish within its time bound."""


class IOOperationError(Text2Mp3Error):
    """A file or storage operation failed.

    Attributes:
        path (Path | None): The file the operation was acting on.
    """

    def __init__(self, msg: str, *, path: str | Path | None = None) -> None:
        self.path: Path | None = Path(path) if path is not None else None
        super().__init__(f"{msg}: '{path}'" if path is not None else msg)


class ArtifactMissingError(IOOperationError):
    """The artifact no longer exists on disk."""


class PersistenceError(IOOperationError):
    """Persisted application state could not be read or written."""


class BatchItemError(Text2Mp3Error):
    """A batch run was aborted because one of its items failed.

    Attributes:
        index (int): 1-based position of the failing item in the submitted batch.
        filename (str): Output filename the item would have produced.
        cause (Text2Mp3Error): The item's own failure.
    """

    def __init__(self, index: int, filename: str, cause: Text2Mp3Error) -> None:
        self.index: int = index
        self.filename: str = filename
        self.cause: Text2Mp3Error = cause
        super().__init__(f"Batch item {index} ({filename}) failed: {cause}")
