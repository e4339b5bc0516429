"""Data models for Text2MP3.

This package contains dataclass definitions for configuration, proxy settings, voices,
synthesis requests, history records and the regular expressions used to validate them.
"""

from __future__ import annotations

from models.config_models import Config, General, Provider, Synthesis
from models.history_models import ClearSummary, ExportSummary, HistoryItem, ItemFailure
from models.proxy_models import ConnectivitySummary, ProxyConfig, ProxyType
from models.re_models import (
    LOCALE_PATTERN,
    SIGNED_HZ_PATTERN,
    SIGNED_PERCENT_PATTERN,
    VOICE_SHORT_NAME_PATTERN,
)
from models.voice_models import (
    ArtifactRef,
    BatchItem,
    BatchProgress,
    Prosody,
    SynthesisRequest,
    Voice,
    split_batch_text,
)

__all__: list[str] = [
    "LOCALE_PATTERN",
    "SIGNED_HZ_PATTERN",
    "SIGNED_PERCENT_PATTERN",
    "VOICE_SHORT_NAME_PATTERN",
    "ArtifactRef",
    "BatchItem",
    "BatchProgress",
    "ClearSummary",
    "Config",
    "ConnectivitySummary",
    "ExportSummary",
    "General",
    "HistoryItem",
    "ItemFailure",
    "Prosody",
    "Provider",
    "ProxyConfig",
    "ProxyType",
    "Synthesis",
    "SynthesisRequest",
    "Voice",
    "split_batch_text",
]
