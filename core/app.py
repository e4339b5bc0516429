"""Application facade wiring the orchestrator components together.

``Text2Mp3App`` owns the state database, the transport and the components built on them. The
current proxy is read from the ``ProxyManager`` on every network-bound call.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Final, Self

from core.file_access import LocalFileAccess
from core.history_store import HistoryStore
from core.progress import ProgressChannel
from core.proxy_manager import ProxyManager
from core.state_storage import StateStorage
from core.synthesis_runner import SynthesisJobRunner
from core.voice_catalog import VoiceCatalog
from handlers.edge_comm import EdgeTTSClient
from models.voice_models import DEFAULT_AUDIO_EXTENSION, Prosody, SynthesisRequest, split_batch_text
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from pathlib import Path

    from core.file_access import Confirmer, FileAccess
    from core.network import SpeechClient
    from models.config_models import Config
    from models.history_models import HistoryItem
    from models.voice_models import BatchProgress, Voice


__all__: list[str] = ["Text2Mp3App"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

STATE_DB_NAME: Final[str] = "state.db"
TEMP_AUDIO_DIR: Final[str] = "temp_audio"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class Text2Mp3App:
    """Facade used by front-ends.

    Attributes:
        config (Config): Loaded configuration.
        data_dir (Path): Directory holding the state database and generated audio.
        temp_dir (Path): Directory generated artifacts are written to.
        proxy_manager (ProxyManager): Current proxy configuration.
        voice_catalog (VoiceCatalog): Known voices.
        runner (SynthesisJobRunner): Synthesis jobs.
        history (HistoryStore): Generated artifacts.
        progress (ProgressChannel): Batch progress broadcast.
    """

    def __init__(
        self,
        *,
        config: Config,
        storage: StateStorage,
        client: SpeechClient,
        file_access: FileAccess,
        confirmer: Confirmer,
        progress: ProgressChannel | None = None,
    ) -> None:
        logger.debug("%s initializing", self.__class__.__name__)
        self.config: Config = config
        self.data_dir: Path = FileUtils.resolve_path(config.GENERAL.DATA_DIR)
        self.temp_dir: Path = self.data_dir / TEMP_AUDIO_DIR
        self.extension: str = DEFAULT_AUDIO_EXTENSION
        self.storage: StateStorage = storage
        self.client: SpeechClient = client
        self.progress: ProgressChannel = progress or ProgressChannel()
        self.proxy_manager = ProxyManager(storage, client, probe_timeout=config.PROVIDER.PROBE_TIMEOUT)
        self.voice_catalog = VoiceCatalog(client)
        self.runner = SynthesisJobRunner(client, file_access, self.progress, max_workers=config.PROVIDER.MAX_WORKERS)
        self.history = HistoryStore(storage, file_access, confirmer)

    @classmethod
    def create(cls, config: Config, confirmer: Confirmer) -> Self:
        """Build the application on the local disk and the Edge transport, and load persisted state.

        Raises:
            PersistenceError: If the state database cannot be opened or read.
        """
        data_dir: Path = FileUtils.resolve_path(config.GENERAL.DATA_DIR)
        app: Self = cls(
            config=config,
            storage=StateStorage(data_dir / STATE_DB_NAME),
            client=EdgeTTSClient(timeout=config.PROVIDER.TIMEOUT),
            file_access=LocalFileAccess(),
            confirmer=confirmer,
        )
        app.load()
        return app

    def load(self) -> None:
        self.storage.open()
        self.proxy_manager.load()
        self.history.load()
        logger.info("Data directory: '%s'", self.data_dir)

    def close(self) -> None:
        self.storage.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        self.close()

    def default_prosody(self) -> Prosody:
        synthesis = self.config.SYNTHESIS
        return Prosody(rate=synthesis.RATE, volume=synthesis.VOLUME, pitch=synthesis.PITCH)

    async def refresh_voices(self) -> tuple[Voice, ...]:
        """Refresh the voice catalog through the current proxy."""
        return await self.voice_catalog.refresh(self.proxy_manager.get())

    async def generate_single(self, text: str, voice: str | None = None, prosody: Prosody | None = None) -> HistoryItem:
        """Synthesise ``text`` into ``temp_audio/audio_<ms>`` and record it in the history."""
        request = SynthesisRequest(
            text=text,
            voice=self.config.SYNTHESIS.VOICE if voice is None else voice,
            output_target=self.temp_dir / f"audio_{_now_ms()}{self.extension}",
            prosody=self.default_prosody() if prosody is None else prosody,
        )
        artifact = await self.runner.synthesize_one(request, self.proxy_manager.get())
        return await self.history.add(artifact)

    async def generate_batch(
        self,
        batch_text: str,
        voice: str | None = None,
        prosody: Prosody | None = None,
        on_progress: Callable[[BatchProgress], None] | None = None,
    ) -> list[HistoryItem]:
        """Synthesise each non-blank line into ``temp_audio/batch_<ms>/`` and record the artifacts.

        Artifacts are added to the history in line order once the whole batch succeeded.
        """
        artifacts = await self.runner.synthesize_batch(
            split_batch_text(batch_text, self.extension),
            self.config.SYNTHESIS.VOICE if voice is None else voice,
            self.default_prosody() if prosody is None else prosody,
            self.temp_dir / f"batch_{_now_ms()}",
            self.proxy_manager.get(),
            on_progress,
        )
        return [await self.history.add(artifact) for artifact in artifacts]
