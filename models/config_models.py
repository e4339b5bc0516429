"""Configuration data models for Text2MP3.

Each dataclass mirrors one section of ``text2mp3.ini``; field names are the INI keys.
Defaults apply to keys (or whole files) that are absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from models.voice_models import DEFAULT_VOICE

__all__: list[str] = [
    "Config",
    "General",
    "Provider",
    "Synthesis",
]


@dataclass
class General:
    DEBUG: bool = False
    DATA_DIR: str = "~/.text2mp3"
    LOG_FILE: str = "text2mp3.log"
    SCRIPT_NAME: str = ""


@dataclass
class Provider:
    TIMEOUT: float = 30.0
    PROBE_TIMEOUT: float = 15.0
    MAX_WORKERS: int = 1


@dataclass
class Synthesis:
    VOICE: str = DEFAULT_VOICE
    LOCALE: str = "zh-CN"
    RATE: int = 0
    VOLUME: int = 0
    PITCH: int = 0


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    PROVIDER: Provider = field(default_factory=Provider)
    SYNTHESIS: Synthesis = field(default_factory=Synthesis)
