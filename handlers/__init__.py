"""Provider transport for Text2MP3.

This package holds the asynchronous client for the Edge "read aloud" speech service and the
transport errors it raises.
"""

from handlers.edge_comm import (
    EdgeCommError,
    EdgeCommProtocolError,
    EdgeCommProxyError,
    EdgeCommRequestError,
    EdgeCommTimeoutError,
    EdgeTTSClient,
)

__all__: list[str] = [
    "EdgeCommError",
    "EdgeCommProtocolError",
    "EdgeCommProxyError",
    "EdgeCommRequestError",
    "EdgeCommTimeoutError",
    "EdgeTTSClient",
]
