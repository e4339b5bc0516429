"""Broadcast channel for batch progress events.

Subscribers receive every event published after they subscribed; there is no replay of earlier
events. A subscriber that raises does not prevent the others from being notified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from models.voice_models import BatchProgress

    ProgressCallback = Callable[[BatchProgress], None]


__all__: list[str] = ["ProgressChannel", "Subscription"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class Subscription:
    """Handle returned by :meth:`ProgressChannel.subscribe`.

    Can be used as a context manager; leaving the block unsubscribes.
    """

    def __init__(self, channel: ProgressChannel, callback: ProgressCallback) -> None:
        self._channel: ProgressChannel = channel
        self._callback: ProgressCallback = callback
        self.active: bool = True

    def unsubscribe(self) -> None:
        """Stop receiving events (idempotent)."""
        if self.active:
            self._channel._remove(self._callback)
            self.active = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        self.unsubscribe()


class ProgressChannel:
    """One-way, multi-consumer progress broadcast."""

    def __init__(self) -> None:
        self._callbacks: list[ProgressCallback] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: ProgressCallback) -> Subscription:
        self._callbacks.append(callback)
        logger.debug("Progress subscriber added (%d total)", len(self._callbacks))
        return Subscription(self, callback)

    def _remove(self, callback: ProgressCallback) -> None:
        # the same callable may be subscribed twice; remove one registration only
        try:
            self._callbacks.remove(callback)
        except ValueError:
            return
        logger.debug("Progress subscriber removed (%d left)", len(self._callbacks))

    def publish(self, progress: BatchProgress) -> None:
        """Deliver ``progress`` to every current subscriber in subscription order."""
        logger.debug("Progress %d/%d", progress.current, progress.total)
        for callback in list(self._callbacks):
            try:
                callback(progress)
            except Exception as err:  # noqa: BLE001
                logger.warning("Progress subscriber %r failed: %s", callback, err)
