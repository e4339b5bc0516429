"""Boundary between the orchestrator and the speech provider transport.

``SpeechClient`` is the interface the orchestrator needs from the transport; ``EdgeTTSClient``
implements it. Transport failures are translated into the application's ``NetworkError`` family
by :func:`network_errors`.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any, Protocol

from handlers.edge_comm import EdgeCommError, EdgeCommRequestError, EdgeCommTimeoutError
from utils.errors import NetworkError, NetworkTimeoutError, ValidationError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterator

    from models.proxy_models import ProxyConfig
    from models.voice_models import Prosody


__all__: list[str] = ["SpeechClient", "network_errors"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class SpeechClient(Protocol):
    """Network operations against the speech provider."""

    async def list_voices(
        self, proxy: ProxyConfig | None = None, *, timeout: float | None = None
    ) -> list[dict[str, Any]]: ...

    async def probe(self, proxy: ProxyConfig, *, timeout: float) -> int: ...

    async def synthesize(self, text: str, voice: str, prosody: Prosody, proxy: ProxyConfig | None = None) -> bytes: ...


@contextlib.contextmanager
def network_errors(action: str) -> Iterator[None]:
    """Re-raise transport errors as ``NetworkTimeoutError`` / ``NetworkError``.

    A request the transport refuses to send (malformed voice name) is a ``ValidationError``.
    """
    try:
        yield
    except EdgeCommRequestError as err:
        msg = f"{action} rejected: {err}"
        raise ValidationError(msg, field="voice") from err
    except EdgeCommTimeoutError as err:
        logger.warning("%s timed out: %s", action, err)
        msg = f"{action} timed out"
        raise NetworkTimeoutError(msg, cause=err) from err
    except EdgeCommError as err:
        logger.warning("%s failed: %s", action, err)
        msg = f"{action} failed"
        raise NetworkError(msg, cause=err) from err
