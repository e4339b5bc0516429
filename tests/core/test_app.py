from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import pytest

from core.app import Text2Mp3App
from core.file_access import LocalFileAccess
from core.state_storage import StateStorage
from handlers.edge_comm import EdgeTTSClient
from models.config_models import Config
from models.proxy_models import ProxyConfig
from models.voice_models import BatchProgress, Prosody

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class FakeSpeechClient:
    def __init__(self) -> None:
        self.synth_calls: list[tuple[str, str, Prosody, ProxyConfig | None]] = []
        self.list_calls: list[ProxyConfig | None] = []

    async def list_voices(self, proxy: ProxyConfig | None = None, *, timeout: float | None = None) -> list[dict[str, Any]]:
        _ = timeout
        self.list_calls.append(proxy)
        return [{"Name": "n", "ShortName": "en-US-AriaNeural", "Gender": "Female", "Locale": "en-US"}]

    async def probe(self, proxy: ProxyConfig, *, timeout: float) -> int:
        _ = proxy, timeout
        return 1

    async def synthesize(self, text: str, voice: str, prosody: Prosody, proxy: ProxyConfig | None = None) -> bytes:
        self.synth_calls.append((text, voice, prosody, proxy))
        return text.encode()


class YesConfirmer:
    async def confirm(self, prompt: str) -> bool:
        _ = prompt
        return True


@pytest.fixture
def config(tmp_path: Path) -> Config:
    cfg = Config()
    cfg.GENERAL.DATA_DIR = str(tmp_path / "data")
    cfg.SYNTHESIS.VOICE = "zh-CN-XiaoxiaoNeural"
    cfg.SYNTHESIS.RATE = 10
    return cfg


@pytest.fixture
def client() -> FakeSpeechClient:
    return FakeSpeechClient()


@pytest.fixture
def app(config: Config, client: FakeSpeechClient, tmp_path: Path) -> Iterator[Text2Mp3App]:
    application = Text2Mp3App(
        config=config,
        storage=StateStorage(tmp_path / "data" / "state.db"),
        client=client,
        file_access=LocalFileAccess(),
        confirmer=YesConfirmer(),
    )
    application.load()
    with application:
        yield application


@pytest.mark.asyncio
async def test_generate_single_uses_configured_defaults(
    app: Text2Mp3App, client: FakeSpeechClient, tmp_path: Path
) -> None:
    item = await app.generate_single("Hello")

    assert re.fullmatch(r"audio_\d+\.mp3", item.name)
    assert item.file_path.parent == tmp_path / "data" / "temp_audio"
    assert item.file_path.read_bytes() == b"Hello"
    assert client.synth_calls == [("Hello", "zh-CN-XiaoxiaoNeural", Prosody(rate=10), None)]
    assert app.history.items == (item,)


@pytest.mark.asyncio
async def test_generate_batch_records_items_in_line_order(app: Text2Mp3App, tmp_path: Path) -> None:
    events: list[BatchProgress] = []

    items = await app.generate_batch("first\n\nsecond\n", voice="en-US-AriaNeural", on_progress=events.append)

    assert [item.name for item in items] == ["audio_1.mp3", "audio_2.mp3"]
    assert re.fullmatch(r"batch_\d+", items[0].file_path.parent.name)
    assert items[0].file_path.parent.parent == tmp_path / "data" / "temp_audio"
    # newest first: the last line is at the top of the history
    assert app.history.items == (items[1], items[0])
    assert events[0] == BatchProgress(0, 2)
    assert events[-1] == BatchProgress(2, 2)


@pytest.mark.asyncio
async def test_proxy_is_read_on_every_call(app: Text2Mp3App, client: FakeSpeechClient) -> None:
    await app.refresh_voices()
    proxy = await app.proxy_manager.set(ProxyConfig(enabled=True, host="10.0.0.2", port=1081))
    await app.refresh_voices()
    await app.generate_single("Hi")

    assert client.list_calls == [None, proxy]
    assert client.synth_calls[0][3] is proxy


@pytest.mark.asyncio
async def test_state_survives_restart(config: Config, client: FakeSpeechClient, tmp_path: Path) -> None:
    def build() -> Text2Mp3App:
        application = Text2Mp3App(
            config=config,
            storage=StateStorage(tmp_path / "data" / "state.db"),
            client=client,
            file_access=LocalFileAccess(),
            confirmer=YesConfirmer(),
        )
        application.load()
        return application

    with build() as first:
        await first.proxy_manager.toggle()
        item = await first.generate_single("Hello")

    with build() as second:
        assert second.proxy_manager.get().enabled is True
        assert second.history.items == (item,)


def test_create_wires_edge_client(config: Config) -> None:
    config.PROVIDER.TIMEOUT = 7.0

    with Text2Mp3App.create(config, YesConfirmer()) as app:
        assert isinstance(app.client, EdgeTTSClient)
        assert app.client.timeout == 7.0
        assert app.storage.db_path == app.data_dir / "state.db"
        assert app.proxy_manager.get() == ProxyConfig()
        assert app.history.items == ()
