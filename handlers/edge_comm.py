"""Client for the Edge "read aloud" text-to-speech service.

The protocol is spoken by the ``edge-tts`` library; this module routes every call through the
proxy in effect at call time and translates library, aiohttp and aiohttp-socks failures into the
``EdgeComm*`` errors. SOCKS5 proxies are handed to the library as an ``aiohttp-socks`` connector,
HTTP/HTTPS proxies as a proxy URL.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import math
from typing import TYPE_CHECKING, Any, Final

import aiohttp
import edge_tts
from aiohttp_socks import ProxyConnectionError, ProxyConnector, ProxyError, ProxyTimeoutError
from aiohttp_socks import ProxyType as SocksProxyType
from edge_tts.exceptions import EdgeTTSException, NoAudioReceived, WebSocketError

from models.proxy_models import ProxyType
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterator, Iterator

    from models.proxy_models import ProxyConfig
    from models.voice_models import Prosody


__all__: list[str] = [
    "EdgeCommError",
    "EdgeCommProtocolError",
    "EdgeCommProxyError",
    "EdgeCommRequestError",
    "EdgeCommTimeoutError",
    "EdgeTTSClient",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_TIMEOUT: Final[float] = 30.0
CONNECT_TIMEOUT: Final[float] = 10.0


class _SharedProxyConnector(ProxyConnector):
    """SOCKS5 connector that stays open across the sessions opened on it.

    ``edge_tts`` opens one session per text chunk, and another one after a clock skew retry, on
    the connector it is given, and every session closes its connector on exit. ``release`` closes
    the connector once the call is over.
    """

    async def close(self, *args: Any, **kwargs: Any) -> None:
        _ = args, kwargs

    async def release(self) -> None:
        await super().close()


@contextlib.asynccontextmanager
async def proxy_route(proxy: ProxyConfig | None) -> AsyncIterator[dict[str, Any]]:
    """Keyword arguments routing one ``edge_tts`` call through ``proxy``.

    Must be entered from inside a running event loop (connector creation).
    """
    if proxy is None:
        yield {}
        return
    if proxy.proxy_type is ProxyType.SOCKS5:
        connector = _SharedProxyConnector(
            proxy_type=SocksProxyType.SOCKS5,
            host=proxy.host,
            port=proxy.port,
            username=proxy.username,
            password=proxy.password,
            rdns=True,
        )
        try:
            yield {"connector": connector}
        finally:
            await connector.release()
        return
    # aiohttp turns the credentials of a proxy URL into Proxy-Authorization
    yield {"proxy": proxy.to_url()}


class EdgeTTSClient:
    """Client for the voice list and speech synthesis endpoints.

    Args:
        timeout (float): Bound in seconds for a voice list request, and for the wait on each
            synthesis frame. Connection setup is bounded by the smaller of this and
            ``CONNECT_TIMEOUT``.
    """

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        logger.debug("%s initializing (timeout=%s)", self.__class__.__name__, timeout)
        self.timeout: float = timeout

    async def list_voices(self, proxy: ProxyConfig | None = None, *, timeout: float | None = None) -> list[dict[str, Any]]:
        """Fetch the raw voice list.

        Args:
            proxy (ProxyConfig | None): Proxy to route through, None for a direct connection.
            timeout (float | None): Total time bound, defaults to the client timeout.

        Returns:
            list[dict[str, Any]]: One mapping per voice, provider key names.

        Raises:
            EdgeCommTimeoutError: If the request did not complete in time.
            EdgeCommProxyError: If the proxy refused, failed or rejected the credentials.
            EdgeCommProtocolError: If the response is not a JSON list of objects.
            EdgeCommError: For any other transport failure.
        """
        total_timeout: float = self.timeout if timeout is None else timeout
        logger.debug("Fetching voice list (timeout=%s, proxy=%s)", total_timeout, proxy.masked_url() if proxy else None)

        with _translate_errors("voice list request"):
            async with proxy_route(proxy) as route, asyncio.timeout(total_timeout):
                try:
                    payload: Any = await edge_tts.list_voices(**route)
                except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError) as err:
                    msg = f"Voice list response is malformed: {err!r}"
                    raise EdgeCommProtocolError(msg) from err

        if not isinstance(payload, list) or not all(isinstance(entry, dict) for entry in payload):
            msg = f"Voice list response has an unexpected shape: {type(payload).__name__}"
            raise EdgeCommProtocolError(msg)
        logger.debug("Voice list contains %d entries", len(payload))
        return [dict(entry) for entry in payload]

    async def probe(self, proxy: ProxyConfig, *, timeout: float) -> int:
        """Bounded connectivity check through ``proxy``; returns the number of voices reachable."""
        return len(await self.list_voices(proxy, timeout=timeout))

    async def synthesize(self, text: str, voice: str, prosody: Prosody, proxy: ProxyConfig | None = None) -> bytes:
        """Synthesise ``text`` and return the MP3 audio.

        Raises:
            EdgeCommRequestError: If the voice or a prosody value is rejected before sending.
            EdgeCommTimeoutError: If connecting or waiting for the next frame took too long.
            EdgeCommProxyError: If the proxy refused, failed or rejected the credentials.
            EdgeCommProtocolError: If the service answered without audio or off protocol.
            EdgeCommError: For any other transport failure.
        """
        logger.debug("Synthesising %d characters with '%s' (%s)", len(text), voice, prosody)

        audio = bytearray()
        with _translate_errors("speech synthesis"):
            async with proxy_route(proxy) as route:
                communicate: edge_tts.Communicate = self._communicate(text, voice, prosody, route)
                async for chunk in communicate.stream():
                    if chunk["type"] == "audio":
                        audio.extend(chunk["data"])

        if not audio:
            msg = "No audio data received"
            raise EdgeCommProtocolError(msg)
        logger.debug("Received %d bytes of audio", len(audio))
        return bytes(audio)

    def _communicate(self, text: str, voice: str, prosody: Prosody, route: dict[str, Any]) -> edge_tts.Communicate:
        try:
            return edge_tts.Communicate(
                text,
                voice,
                rate=prosody.rate_str,
                volume=prosody.volume_str,
                pitch=prosody.pitch_str,
                connect_timeout=math.ceil(min(CONNECT_TIMEOUT, self.timeout)),
                receive_timeout=math.ceil(self.timeout),
                **route,
            )
        except (ValueError, TypeError) as err:
            msg = f"Request rejected: {err}"
            raise EdgeCommRequestError(msg) from err


@contextlib.contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """Map library and transport exceptions onto the ``EdgeComm*`` hierarchy."""
    try:
        yield
    except EdgeCommError:
        raise
    except (TimeoutError, ProxyTimeoutError) as err:
        logger.debug(err)
        msg = f"{action} timed out"
        raise EdgeCommTimeoutError(msg) from err
    except NoAudioReceived as err:
        logger.debug(err)
        msg = f"{action}: no audio received"
        raise EdgeCommProtocolError(msg) from err
    except WebSocketError as err:
        logger.debug(err)
        msg = f"{action}: connection failed ({err})"
        raise EdgeCommError(msg) from err
    except EdgeTTSException as err:
        logger.debug(err)
        msg = f"{action}: unexpected answer from the service ({err})"
        raise EdgeCommProtocolError(msg) from err
    except aiohttp.ClientHttpProxyError as err:
        logger.debug(err)
        msg = (
            f"{action}: proxy authentication failed"
            if err.status == 407
            else f"{action}: proxy answered with status {err.status}"
        )
        raise EdgeCommProxyError(msg) from err
    except (aiohttp.ClientProxyConnectionError, ProxyConnectionError) as err:
        logger.debug(err)
        msg = f"{action}: could not connect to the proxy"
        raise EdgeCommProxyError(msg) from err
    except ProxyError as err:
        logger.debug(err)
        msg = f"{action}: proxy refused the connection ({err})"
        raise EdgeCommProxyError(msg) from err
    except aiohttp.WSServerHandshakeError as err:
        logger.debug(err)
        msg = f"{action}: WebSocket handshake rejected with status {err.status}"
        raise EdgeCommError(msg) from err
    except aiohttp.ClientResponseError as err:
        logger.debug(err)
        msg = f"{action}: error response from the service, status {err.status}"
        raise EdgeCommError(msg) from err
    except aiohttp.ClientConnectorError as err:
        logger.debug(err)
        msg = f"{action}: the service is unreachable"
        raise EdgeCommError(msg) from err
    except (aiohttp.ClientError, ConnectionResetError) as err:
        logger.debug(err)
        msg = f"{action}: connection failed ({err})"
        raise EdgeCommError(msg) from err


class EdgeCommError(Exception):
    """Base class for transport errors talking to the service."""


class EdgeCommRequestError(EdgeCommError):
    """The request was rejected locally (malformed voice name or prosody value)."""


class EdgeCommTimeoutError(EdgeCommError):
    """The service or the proxy did not answer in time."""


class EdgeCommProxyError(EdgeCommError):
    """The proxy could not be reached, refused the tunnel or rejected the credentials."""


class EdgeCommProtocolError(EdgeCommError):
    """The service answered with something that does not follow the protocol."""
