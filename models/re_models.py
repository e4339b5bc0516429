"""Regular expressions for provider identifiers.

Patterns for voice short names, locale codes and signed prosody values.
"""

from __future__ import annotations

import re
from re import Pattern
from typing import Final

__all__: list[str] = [
    "LOCALE_PATTERN",
    "SIGNED_HZ_PATTERN",
    "SIGNED_PERCENT_PATTERN",
    "VOICE_SHORT_NAME_PATTERN",
]

# Provider voice identifier with the locale embedded as its first two segments
# Example: "zh-CN-XiaoxiaoNeural", "en-US-AvaMultilingualNeural", "zh-CN-liaoning-XiaobeiNeural"
VOICE_SHORT_NAME_PATTERN: Final[Pattern[str]] = re.compile(
    r"^(?P<locale>[a-z]{2,3}-[A-Z]{2,})(?:-[A-Za-z]+)*-(?P<name>[A-Za-z]+Neural)$"
)

# Locale code or locale prefix used to narrow the catalog
# Example: "zh", "zh-CN", "en-US"
LOCALE_PATTERN: Final[Pattern[str]] = re.compile(r"^[a-z]{2,3}(?:-[A-Za-z0-9]+)*$")

# Prosody values in provider syntax, sign always present
# Example: "+0%", "-20%", "+10Hz"
SIGNED_PERCENT_PATTERN: Final[Pattern[str]] = re.compile(r"^[+-]\d+%$")
SIGNED_HZ_PATTERN: Final[Pattern[str]] = re.compile(r"^[+-]\d+Hz$")
