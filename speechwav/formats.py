"""
speechwav.formats - Audio format descriptors and target constants.

The target profile is fixed: 16 kHz, mono, signed 16-bit little-endian PCM.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

TARGET_SAMPLE_RATE = 16_000
TARGET_CHANNELS = 1
TARGET_BITS_PER_SAMPLE = 16

TARGET_BYTE_RATE = TARGET_SAMPLE_RATE * TARGET_CHANNELS * TARGET_BITS_PER_SAMPLE // 8


class TrackFormat(BaseModel):
    """Format of one container track as reported by a demuxer."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    sample_rate_hz: int | None = None
    channel_count: int | None = None
    extradata: bytes | None = None

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")


class AudioFormatDescriptor(BaseModel):
    """Source audio format, discovered once per file."""

    model_config = ConfigDict(frozen=True)

    sample_rate_hz: int = Field(gt=0)
    channel_count: int = Field(ge=1)
    codec_mime_type: str
    extradata: bytes | None = None

    def describe(self) -> str:
        return f"{self.codec_mime_type}, {self.sample_rate_hz}Hz, {self.channel_count} channels"
