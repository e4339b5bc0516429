from __future__ import annotations

from pathlib import Path

import pytest

from models.re_models import SIGNED_HZ_PATTERN, SIGNED_PERCENT_PATTERN
from models.voice_models import (
    BatchItem,
    BatchProgress,
    Prosody,
    SynthesisRequest,
    Voice,
    format_signed,
    split_batch_text,
)
from utils.errors import ValidationError


def test_split_drops_blank_lines_and_numbers_remaining() -> None:
    assert split_batch_text("Hello\n\nWorld") == [
        BatchItem(text="Hello", filename="audio_1.mp3"),
        BatchItem(text="World", filename="audio_2.mp3"),
    ]


def test_split_ignores_whitespace_lines_and_trims() -> None:
    items = split_batch_text("\n   \n  one \r\n\t\ntwo\n\nthree\n   ", extension="wav")

    assert [item.text for item in items] == ["one", "two", "three"]
    assert [item.filename for item in items] == ["audio_1.wav", "audio_2.wav", "audio_3.wav"]


def test_split_of_blank_text_is_empty() -> None:
    assert split_batch_text(" \n\n ") == []


def test_split_breaks_on_newline_only() -> None:
    items = split_batch_text("a\x0cb\nc")

    assert [item.text for item in items] == ["a\x0cb", "c"]
    assert split_batch_text("Hello\x0cWorld\u2028Again\x85!") == [
        BatchItem(text="Hello\x0cWorld\u2028Again\x85!", filename="audio_1.mp3")
    ]


@pytest.mark.parametrize(
    ("value", "unit", "expected"),
    [(0, "%", "+0%"), (10, "%", "+10%"), (-20, "%", "-20%"), (0, "Hz", "+0Hz"), (-5, "Hz", "-5Hz")],
)
def test_format_signed_always_has_sign(value: int, unit: str, expected: str) -> None:
    assert format_signed(value, unit) == expected


def test_prosody_strings_match_provider_syntax() -> None:
    prosody = Prosody(rate=25, volume=-10, pitch=3)

    assert SIGNED_PERCENT_PATTERN.match(prosody.rate_str)
    assert SIGNED_PERCENT_PATTERN.match(prosody.volume_str)
    assert SIGNED_HZ_PATTERN.match(prosody.pitch_str)
    assert str(prosody) == "rate=+25% volume=-10% pitch=+3Hz"


def test_prosody_rejects_non_integers() -> None:
    with pytest.raises(ValidationError) as excinfo:
        Prosody(rate="10%")  # type: ignore[arg-type]
    assert excinfo.value.field == "rate"


def test_prosody_out_of_range_is_reported_not_rejected() -> None:
    assert Prosody().out_of_range() == []
    assert Prosody(rate=150, pitch=-30).out_of_range() == ["rate", "pitch"]


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_request_with_blank_text_is_invalid(text: str) -> None:
    request = SynthesisRequest(text=text, voice="en-US-AriaNeural", output_target=Path("out.mp3"))

    with pytest.raises(ValidationError) as excinfo:
        request.validate()
    assert excinfo.value.field == "text"


def test_request_without_voice_is_invalid() -> None:
    with pytest.raises(ValidationError):
        SynthesisRequest(text="hi", voice=" ", output_target=Path("out.mp3")).validate()


def test_voice_decodes_provider_keys() -> None:
    voice = Voice.from_dict(
        {
            "Name": "Microsoft Server Speech Text to Speech Voice (zh-CN, XiaoxiaoNeural)",
            "ShortName": "zh-CN-XiaoxiaoNeural",
            "Gender": "Female",
            "Locale": "zh-CN",
            "FriendlyName": "Microsoft Xiaoxiao Online (Natural) - Chinese (Mainland)",
            "SuggestedCodec": "audio-24khz-48kbitrate-mono-mp3",
            "Status": "GA",
            "VoiceTag": {"ContentCategories": ["News"]},
        }
    )

    assert voice.short_name == "zh-CN-XiaoxiaoNeural"
    assert voice.locale == "zh-CN"
    assert voice.friendly_name.startswith("Microsoft Xiaoxiao")
    assert str(voice) == "zh-CN-XiaoxiaoNeural (Female, zh-CN)"


def test_batch_progress_finished() -> None:
    assert BatchProgress(0, 0).finished is False
    assert BatchProgress(1, 2).finished is False
    assert BatchProgress(2, 2).finished is True
