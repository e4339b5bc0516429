"""Proxy configuration holder.

The current proxy is loaded once from the state database, replaced wholesale on every change and
persisted before the change is visible. Network-bound components read :meth:`ProxyManager.get`
on every call, so a change applies to the next request.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from typing import TYPE_CHECKING, Any, Final

from core.network import network_errors
from models.proxy_models import ConnectivitySummary, ProxyConfig
from utils.errors import ConfigurationError, ValidationError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.network import SpeechClient
    from core.state_storage import StateStorage


__all__: list[str] = ["ProxyManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

PROXY_STATE_KEY: Final[str] = "proxy"
DEFAULT_PROBE_TIMEOUT: Final[float] = 15.0


class ProxyManager:
    """Owns the persisted proxy configuration.

    Args:
        storage (StateStorage): Database the configuration is persisted to.
        client (SpeechClient): Transport used by the connectivity probe.
        key (str): Record key in ``storage``.
        probe_timeout (float): Time bound for :meth:`test` in seconds.
    """

    def __init__(
        self,
        storage: StateStorage,
        client: SpeechClient,
        *,
        key: str = PROXY_STATE_KEY,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> None:
        logger.debug("%s initializing", self.__class__.__name__)
        self.storage: StateStorage = storage
        self.client: SpeechClient = client
        self.key: str = key
        self.probe_timeout: float = probe_timeout
        self._config: ProxyConfig = ProxyConfig()
        self._lock = asyncio.Lock()

    def load(self) -> ProxyConfig:
        """Read the stored configuration; defaults are used when nothing valid is stored.

        Raises:
            PersistenceError: If the database cannot be read.
        """
        record: Any = self.storage.load(self.key)
        if record is None:
            logger.debug("No stored proxy configuration, using defaults")
            self._config = ProxyConfig()
        else:
            try:
                self._config = ProxyConfig.from_dict(record)
            except (ValidationError, KeyError, TypeError, ValueError, AttributeError) as err:
                logger.warning("Stored proxy configuration is invalid, using defaults: %s", err)
                self._config = ProxyConfig()
        self._remember_secret(self._config)
        logger.info("Proxy configuration loaded: %r", self._config)
        return self._config

    def get(self) -> ProxyConfig:
        return self._config

    async def set(self, config: ProxyConfig) -> ProxyConfig:
        """Persist ``config`` and make it current.

        Raises:
            PersistenceError: If the configuration cannot be written; the previous one stays current.
        """
        async with self._lock:
            self._remember_secret(config)
            self.storage.save(self.key, config.to_dict(encode_json=True))
            self._config = config
        logger.info("Proxy configuration saved: %r", config)
        if warning := config.streaming_warning:
            logger.warning(warning)
        return config

    async def update(self, **changes: Any) -> ProxyConfig:
        """Change individual fields of the current configuration.

        Raises:
            ValidationError: If a field name is unknown or a value is malformed.
        """
        try:
            config: ProxyConfig = dataclasses.replace(self._config, **changes)
        except TypeError as err:
            msg = f"unknown proxy setting ({err})"
            raise ValidationError(msg) from err
        return await self.set(config)

    async def toggle(self) -> ProxyConfig:
        """Flip ``enabled`` and persist."""
        return await self.set(dataclasses.replace(self._config, enabled=not self._config.enabled))

    async def test(self, config: ProxyConfig | None = None) -> ConnectivitySummary:
        """Probe the provider through ``config`` (the current configuration by default).

        Nothing is persisted.

        Raises:
            ConfigurationError: If the proxy is disabled or incomplete; no request is made.
            NetworkError: If the provider cannot be reached through the proxy in time.
        """
        config = self._config if config is None else config
        if not config.enabled:
            msg = "proxy is disabled, enable it before testing"
            raise ConfigurationError(msg, field="enabled")
        config.require_usable()

        logger.info("Testing proxy %s", config.masked_url())
        started: float = time.perf_counter()
        with network_errors(f"Proxy test via {config.masked_url()}"):
            voice_count: int = await self.client.probe(config, timeout=self.probe_timeout)
        summary = ConnectivitySummary(
            proxy_url=config.masked_url(),
            voice_count=voice_count,
            elapsed=time.perf_counter() - started,
        )
        logger.info(summary.message)
        return summary

    @staticmethod
    def _remember_secret(config: ProxyConfig) -> None:
        if config.password:
            LoggerUtils.register_secret(config.password)
