"""Data models for speech synthesis.

This module defines:
- Voice: An entry of the provider's voice catalog.
- Prosody: Rate, volume and pitch adjustments in provider syntax.
- SynthesisRequest: Everything needed to produce one artifact.
- BatchItem: One line of a batch job and its output filename.
- ArtifactRef: A generated audio file and its size.
- BatchProgress: Completed/total counters of a running batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, NamedTuple

from dataclasses_json import DataClassJsonMixin, LetterCase, Undefined, dataclass_json

from models.re_models import VOICE_SHORT_NAME_PATTERN
from utils.errors import ValidationError

__all__: list[str] = [
    "DEFAULT_AUDIO_EXTENSION",
    "DEFAULT_VOICE",
    "ArtifactRef",
    "BatchItem",
    "BatchProgress",
    "Prosody",
    "SynthesisRequest",
    "Voice",
    "split_batch_text",
]

DEFAULT_VOICE: Final[str] = "zh-CN-XiaoxiaoNeural"
DEFAULT_AUDIO_EXTENSION: Final[str] = ".mp3"

# Commonly supported ranges; values outside are passed through with a warning
RATE_RANGE: Final[tuple[int, int]] = (-50, 100)
VOLUME_RANGE: Final[tuple[int, int]] = (-50, 50)
PITCH_RANGE: Final[tuple[int, int]] = (-20, 20)


@dataclass_json(letter_case=LetterCase.PASCAL, undefined=Undefined.EXCLUDE)
@dataclass(frozen=True)
class Voice(DataClassJsonMixin):
    """Voice as listed by the provider.

    The provider uses PascalCase keys (``ShortName``, ``FriendlyName``, ...).
    ``short_name`` is the catalog key and the identifier submitted for synthesis.
    """

    name: str
    short_name: str
    gender: str
    locale: str
    friendly_name: str = ""
    suggested_codec: str = ""
    status: str = ""

    def __str__(self) -> str:
        return f"{self.short_name} ({self.gender}, {self.locale})"


def format_signed(value: int, unit: str) -> str:
    """Provider syntax for a prosody value: the sign is always explicit (``+0%``, ``-5Hz``)."""
    return f"{'+' if value >= 0 else '-'}{abs(value)}{unit}"


@dataclass(frozen=True)
class Prosody:
    """Acoustic adjustments applied to a synthesis.

    Attributes:
        rate (int): Speaking rate change in percent.
        volume (int): Volume change in percent.
        pitch (int): Pitch change in Hz.
    """

    rate: int = 0
    volume: int = 0
    pitch: int = 0

    def __post_init__(self) -> None:
        for name in ("rate", "volume", "pitch"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"expected an integer, got {value!r}"
                raise ValidationError(msg, field=name)

    @property
    def rate_str(self) -> str:
        return format_signed(self.rate, "%")

    @property
    def volume_str(self) -> str:
        return format_signed(self.volume, "%")

    @property
    def pitch_str(self) -> str:
        return format_signed(self.pitch, "Hz")

    def out_of_range(self) -> list[str]:
        """Names of the values lying outside the commonly supported ranges."""
        ranges: dict[str, tuple[int, int]] = {"rate": RATE_RANGE, "volume": VOLUME_RANGE, "pitch": PITCH_RANGE}
        return [name for name, (low, high) in ranges.items() if not low <= getattr(self, name) <= high]

    def __str__(self) -> str:
        return f"rate={self.rate_str} volume={self.volume_str} pitch={self.pitch_str}"


@dataclass(frozen=True)
class SynthesisRequest:
    """A single synthesis job.

    Attributes:
        text (str): Text to speak; must not be blank.
        voice (str): Short name of the voice.
        prosody (Prosody): Rate, volume and pitch adjustments.
        output_target (Path): Where the artifact is written.
    """

    text: str
    voice: str
    output_target: Path
    prosody: Prosody = field(default_factory=Prosody)

    def validate(self) -> None:
        """Raise ``ValidationError`` for blank text or a missing voice."""
        if not self.text.strip():
            msg = "text is empty"
            raise ValidationError(msg, field="text")
        if not self.voice.strip():
            msg = "no voice selected"
            raise ValidationError(msg, field="voice")

    @property
    def looks_like_short_name(self) -> bool:
        return VOICE_SHORT_NAME_PATTERN.match(self.voice) is not None


@dataclass(frozen=True)
class BatchItem:
    """One line of batch input.

    Attributes:
        text (str): Trimmed line text.
        filename (str): Output filename, ``audio_<n><ext>``.
    """

    text: str
    filename: str


def split_batch_text(text: str, extension: str = DEFAULT_AUDIO_EXTENSION) -> list[BatchItem]:
    """Split multi-line input into batch items.

    Only ``\\n`` separates lines (a trailing ``\\r`` is stripped with the line). Blank and
    whitespace-only lines are dropped; remaining lines are numbered from 1 in input order,
    so the numbering does not depend on where blank lines were.

    Example:
        >>> split_batch_text("Hello\\n\\nWorld")
        [BatchItem(text='Hello', filename='audio_1.mp3'), BatchItem(text='World', filename='audio_2.mp3')]
    """
    if not extension.startswith("."):
        extension = f".{extension}"
    lines: list[str] = [line.strip() for line in text.split("\n") if line.strip()]
    return [BatchItem(text=line, filename=f"audio_{index}{extension}") for index, line in enumerate(lines, start=1)]


@dataclass(frozen=True)
class ArtifactRef:
    """Generated audio file.

    Attributes:
        path (Path): Absolute location of the artifact.
        size (int): Size in bytes, measured after the write completed.
    """

    path: Path
    size: int


class BatchProgress(NamedTuple):
    """Completed items out of the batch total."""

    current: int
    total: int

    @property
    def finished(self) -> bool:
        return self.total > 0 and self.current >= self.total
