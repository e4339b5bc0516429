"""Proxy configuration model.

The proxy record is persisted as JSON (``enabled``, ``proxy_type``, ``host``, ``port``,
``username``, ``password``) and is validated whenever an instance is constructed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final
from urllib.parse import quote

from dataclasses_json import DataClassJsonMixin, dataclass_json

from utils.errors import ConfigurationError, ValidationError

__all__: list[str] = ["ConnectivitySummary", "ProxyConfig", "ProxyType"]

DEFAULT_PROXY_HOST: Final[str] = "127.0.0.1"
DEFAULT_PROXY_PORT: Final[int] = 1080
MAX_PORT: Final[int] = 65535

STREAMING_PROXY_WARNING: Final[str] = (
    "Streaming synthesis supports SOCKS5 proxies only; HTTP/HTTPS proxies may fail for speech generation"
)


class ProxyType(StrEnum):
    """Proxy protocols accepted by the transport."""

    HTTP = "Http"
    HTTPS = "Https"
    SOCKS5 = "Socks5"

    @property
    def scheme(self) -> str:
        return self.value.lower()


@dataclass_json
@dataclass(frozen=True)
class ProxyConfig(DataClassJsonMixin):
    """Proxy used for all provider communication.

    Attributes:
        enabled (bool): Route provider traffic through the proxy.
        proxy_type (ProxyType): Proxy protocol.
        host (str): Proxy host name or address.
        port (int): Proxy port (0-65535; 0 means unset).
        username (str | None): Optional user name.
        password (str | None): Optional password, never logged.

    Raises:
        ValidationError: If a field has the wrong shape (unknown type, port out of range, ...).
    """

    enabled: bool = False
    proxy_type: ProxyType = ProxyType.SOCKS5
    host: str = DEFAULT_PROXY_HOST
    port: int = DEFAULT_PROXY_PORT
    username: str | None = None
    password: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.enabled, bool):
            msg = f"expected bool, got {type(self.enabled).__name__}"
            raise ValidationError(msg, field="enabled")

        try:
            proxy_type = ProxyType(self.proxy_type)
        except ValueError:
            msg = f"unknown proxy type '{self.proxy_type}'; expected one of {[t.value for t in ProxyType]}"
            raise ValidationError(msg, field="proxy_type") from None
        object.__setattr__(self, "proxy_type", proxy_type)

        if not isinstance(self.host, str):
            msg = f"expected str, got {type(self.host).__name__}"
            raise ValidationError(msg, field="host")
        object.__setattr__(self, "host", self.host.strip())

        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 <= self.port <= MAX_PORT:
            msg = f"port must be an integer in range 0-{MAX_PORT}, got {self.port!r}"
            raise ValidationError(msg, field="port")

        # blank credentials are treated as absent
        for name in ("username", "password"):
            value: str | None = getattr(self, name)
            if value is not None and not isinstance(value, str):
                msg = f"expected str, got {type(value).__name__}"
                raise ValidationError(msg, field=name)
            object.__setattr__(self, name, value or None)

    @property
    def is_complete(self) -> bool:
        """Host and port are both set."""
        return bool(self.host) and self.port > 0

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None

    @property
    def streaming_warning(self) -> str | None:
        """Warning for enabled proxies the streaming protocol may not tunnel through."""
        if self.enabled and self.proxy_type is not ProxyType.SOCKS5:
            return STREAMING_PROXY_WARNING
        return None

    def require_usable(self) -> None:
        """Fail fast when an enabled proxy is missing its host or port.

        Raises:
            ConfigurationError: If the proxy is enabled but incomplete.
        """
        if not self.enabled:
            return
        if not self.host:
            msg = "proxy is enabled but no host is set"
            raise ConfigurationError(msg, field="host")
        if self.port <= 0:
            msg = "proxy is enabled but no port is set"
            raise ConfigurationError(msg, field="port")

    def active(self) -> ProxyConfig | None:
        """Return ``self`` when traffic must go through the proxy, otherwise None."""
        self.require_usable()
        return self if self.enabled else None

    def to_url(self) -> str:
        """``scheme://[user:pass@]host:port``; credentials only when both are set."""
        userinfo: str = ""
        if self.has_credentials:
            userinfo = f"{quote(self.username or '', safe='')}:{quote(self.password or '', safe='')}@"
        return f"{self.proxy_type.scheme}://{userinfo}{self.host}:{self.port}"

    def masked_url(self) -> str:
        """Same as :meth:`to_url` with the password replaced, safe for logs and messages."""
        userinfo: str = f"{self.username}:******@" if self.has_credentials else ""
        return f"{self.proxy_type.scheme}://{userinfo}{self.host}:{self.port}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(enabled={self.enabled}, proxy_type={self.proxy_type.value}, "
            f"host={self.host!r}, port={self.port}, username={self.username!r}, "
            f"password={'******' if self.password else None})"
        )


@dataclass(frozen=True)
class ConnectivitySummary:
    """Result of a successful proxy connectivity probe.

    Attributes:
        proxy_url (str): Proxy that was tested, password masked.
        voice_count (int): Number of voices the provider returned through the proxy.
        elapsed (float): Round trip time in seconds.
    """

    proxy_url: str
    voice_count: int
    elapsed: float

    @property
    def message(self) -> str:
        return f"Proxy {self.proxy_url} is working: {self.voice_count} voices reachable in {self.elapsed:.2f}s"

    def __str__(self) -> str:
        return self.message
