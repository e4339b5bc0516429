"""Single and batch speech synthesis jobs.

Only one job may be outstanding at a time. A batch fixes its total before any work starts,
publishes ``(0, total)`` and then one event per completed item. Items may run on a bounded pool of
workers; the first failing item aborts the rest of the batch.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Final

from core.network import network_errors
from core.progress import ProgressChannel
from models.voice_models import ArtifactRef, BatchProgress, SynthesisRequest
from utils.errors import BatchItemError, JobInProgressError, Text2Mp3Error, ValidationError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from core.file_access import FileAccess
    from core.network import SpeechClient
    from core.progress import Subscription
    from models.proxy_models import ProxyConfig
    from models.voice_models import BatchItem, Prosody


__all__: list[str] = ["SynthesisJobRunner"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_MAX_WORKERS: Final[int] = 1


class SynthesisJobRunner:
    """Submits synthesis jobs and reports batch progress.

    Args:
        client (SpeechClient): Transport used for synthesis.
        file_access (FileAccess): Writes and measures the artifacts.
        progress_channel (ProgressChannel | None): Channel batch progress is published on.
        max_workers (int): Batch items synthesised concurrently.

    Raises:
        ValueError: If ``max_workers`` is less than 1.
    """

    def __init__(
        self,
        client: SpeechClient,
        file_access: FileAccess,
        progress_channel: ProgressChannel | None = None,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        logger.debug("%s initializing (max_workers=%d)", self.__class__.__name__, max_workers)
        self.client: SpeechClient = client
        self.file_access: FileAccess = file_access
        self.progress_channel: ProgressChannel = progress_channel or ProgressChannel()
        self.max_workers: int = max_workers
        self._busy: bool = False
        self._progress: BatchProgress = BatchProgress(0, 0)

    @property
    def busy(self) -> bool:
        """A job is outstanding; new submissions are rejected."""
        return self._busy

    @property
    def progress(self) -> BatchProgress:
        """Last progress of the current (or most recent) batch."""
        return self._progress

    def _acquire(self) -> None:
        if self._busy:
            msg = "Another synthesis job is still running"
            raise JobInProgressError(msg)
        self._busy = True

    async def synthesize_one(self, request: SynthesisRequest, proxy: ProxyConfig) -> ArtifactRef:
        """Synthesise one request and write it to ``request.output_target``.

        Raises:
            ValidationError: If the text is blank or no voice is given.
            ConfigurationError: If the proxy is enabled but incomplete.
            JobInProgressError: If another job is outstanding.
            NetworkError: If the provider or the proxy failed.
            IOOperationError: If the artifact could not be written.
        """
        request.validate()
        route: ProxyConfig | None = self._route(proxy, request)
        self._acquire()
        try:
            artifact: ArtifactRef = await self._produce(request, route)
        finally:
            self._busy = False
        logger.info("Generated '%s' (%d bytes)", artifact.path, artifact.size)
        return artifact

    async def synthesize_batch(
        self,
        items: Iterable[BatchItem],
        voice: str,
        prosody: Prosody,
        output_dir: Path,
        proxy: ProxyConfig,
        on_progress: Callable[[BatchProgress], None] | None = None,
    ) -> list[ArtifactRef]:
        """Synthesise every item into ``output_dir``.

        Args:
            items (Iterable[BatchItem]): Items in submission order.
            voice (str): Voice short name used for every item.
            prosody (Prosody): Adjustments used for every item.
            output_dir (Path): Directory the artifacts are written to, created if missing.
            proxy (ProxyConfig): Proxy in effect for this batch.
            on_progress (Callable | None): Subscribed to the progress channel for this run only.

        Returns:
            list[ArtifactRef]: Artifacts in the order of ``items``.

        Raises:
            ValidationError: If there are no items or an item is invalid.
            ConfigurationError: If the proxy is enabled but incomplete.
            JobInProgressError: If another job is outstanding.
            BatchItemError: If an item failed; artifacts already written stay on disk.
        """
        requests: list[SynthesisRequest] = [
            SynthesisRequest(text=item.text, voice=voice, output_target=output_dir / item.filename, prosody=prosody)
            for item in items
        ]
        if not requests:
            msg = "there is nothing to synthesise"
            raise ValidationError(msg, field="text")
        for request in requests:
            request.validate()
        route: ProxyConfig | None = self._route(proxy, requests[0])

        self._acquire()
        subscription: Subscription | None = None
        try:
            if on_progress is not None:
                subscription = self.progress_channel.subscribe(on_progress)
            return await self._run_batch(requests, output_dir, route)
        finally:
            if subscription is not None:
                subscription.unsubscribe()
            self._busy = False

    async def _run_batch(
        self, requests: list[SynthesisRequest], output_dir: Path, route: ProxyConfig | None
    ) -> list[ArtifactRef]:
        total: int = len(requests)
        self._progress = BatchProgress(0, 0)
        self._publish(BatchProgress(0, total))
        logger.info("Batch of %d items started in '%s'", total, output_dir)

        await self.file_access.ensure_directory(output_dir)

        semaphore = asyncio.Semaphore(self.max_workers)

        async def worker(request: SynthesisRequest) -> ArtifactRef:
            async with semaphore:
                return await self._produce(request, route)

        tasks: list[asyncio.Task[ArtifactRef]] = [
            asyncio.create_task(worker(request), name=f"batch-item-{index}")
            for index, request in enumerate(requests, start=1)
        ]
        positions: dict[asyncio.Task[ArtifactRef], int] = {task: index for index, task in enumerate(tasks)}
        completed: int = 0
        pending: set[asyncio.Task[ArtifactRef]] = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=positions.__getitem__):
                    if (err := task.exception()) is not None:
                        self._abort(positions[task], requests[positions[task]], err)
                    completed += 1
                    self._publish(BatchProgress(completed, total))
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            # mark failures of items finished in the same round as the aborting one as retrieved
            for task in tasks:
                if task.done() and not task.cancelled():
                    task.exception()

        logger.info("Batch of %d items finished", total)
        return [task.result() for task in tasks]

    @staticmethod
    def _abort(position: int, request: SynthesisRequest, err: BaseException) -> None:
        if not isinstance(err, Text2Mp3Error):
            raise err
        logger.error("Batch item %d ('%s') failed: %s", position + 1, request.output_target.name, err)
        raise BatchItemError(position + 1, request.output_target.name, err) from err

    async def _produce(self, request: SynthesisRequest, route: ProxyConfig | None) -> ArtifactRef:
        target: Path = request.output_target.absolute()
        with network_errors(f"Synthesis of '{target.name}'"):
            audio: bytes = await self.client.synthesize(request.text, request.voice, request.prosody, route)
        await self.file_access.write_artifact(target, audio)
        size: int = await self.file_access.stat_size(target)
        return ArtifactRef(path=target, size=size)

    def _publish(self, progress: BatchProgress) -> None:
        self._progress = progress
        self.progress_channel.publish(progress)

    @staticmethod
    def _route(proxy: ProxyConfig, request: SynthesisRequest) -> ProxyConfig | None:
        """Proxy to use for the job; checks preconditions and logs advisory warnings."""
        route: ProxyConfig | None = proxy.active()
        if warning := proxy.streaming_warning:
            logger.warning(warning)
        if not request.looks_like_short_name:
            logger.warning("Voice '%s' does not look like a provider voice name", request.voice)
        if out_of_range := request.prosody.out_of_range():
            logger.warning("%s outside the usual range (%s)", ", ".join(out_of_range), request.prosody)
        return route
