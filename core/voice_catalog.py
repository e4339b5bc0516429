"""Voice catalog of the speech provider.

The catalog is fetched in full on every refresh and swapped in only when the whole list decoded
successfully; a failed refresh leaves the previously known voices in place.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from core.network import network_errors
from models.voice_models import Voice
from utils.errors import NetworkError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable

    from core.network import SpeechClient
    from models.proxy_models import ProxyConfig


__all__: list[str] = ["VoiceCatalog"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class VoiceCatalog:
    """In-memory list of available voices.

    Attributes:
        client (SpeechClient): Transport used to fetch the voice list.
    """

    def __init__(self, client: SpeechClient) -> None:
        self.client: SpeechClient = client
        self._voices: tuple[Voice, ...] = ()
        self._lock = asyncio.Lock()

    @property
    def voices(self) -> tuple[Voice, ...]:
        return self._voices

    async def refresh(self, proxy: ProxyConfig) -> tuple[Voice, ...]:
        """Fetch the full voice list through ``proxy`` and replace the catalog.

        Args:
            proxy (ProxyConfig): Proxy in effect for this call; a disabled proxy means a direct connection.

        Returns:
            tuple[Voice, ...]: The new catalog in provider order.

        Raises:
            ConfigurationError: If the proxy is enabled but incomplete; no request is made.
            NetworkError: If the list cannot be fetched or is malformed. The catalog is unchanged.
        """
        route: ProxyConfig | None = proxy.active()
        async with self._lock:
            with network_errors("Voice list refresh"):
                entries: list[dict[str, Any]] = await self.client.list_voices(route)
            voices: tuple[Voice, ...] = self._decode(entries)
            self._voices = voices
        logger.info("Voice catalog refreshed: %d voices", len(voices))
        return voices

    @staticmethod
    def _decode(entries: Iterable[dict[str, Any]]) -> tuple[Voice, ...]:
        voices: list[Voice] = []
        seen: set[str] = set()
        for entry in entries:
            try:
                voice = Voice.from_dict(entry)
            except (KeyError, TypeError, ValueError) as err:
                msg = f"Voice list contains a malformed entry ({err})"
                raise NetworkError(msg, cause=err) from err
            if not isinstance(voice.short_name, str) or not isinstance(voice.locale, str):
                msg = f"Voice list contains a malformed entry: {entry!r}"
                raise NetworkError(msg)
            if voice.short_name in seen:
                logger.debug("Duplicate voice '%s' ignored", voice.short_name)
                continue
            seen.add(voice.short_name)
            voices.append(voice)
        return tuple(voices)

    @staticmethod
    def filter_by_locale_prefix(catalog: Iterable[Voice], prefix: str) -> list[Voice]:
        """Voices whose locale starts with ``prefix`` (``"zh"`` matches ``zh-CN`` and ``zh-TW``), in catalog order."""
        return [voice for voice in catalog if voice.locale.startswith(prefix)]

    def by_locale(self, prefix: str) -> list[Voice]:
        return self.filter_by_locale_prefix(self._voices, prefix)

    def locales(self) -> list[str]:
        """Distinct locales in the catalog, sorted."""
        return sorted({voice.locale for voice in self._voices})

    def find(self, short_name: str) -> Voice | None:
        for voice in self._voices:
            if voice.short_name == short_name:
                return voice
        return None
