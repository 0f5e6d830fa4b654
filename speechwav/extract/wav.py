"""
speechwav.extract.wav - Canonical 44-byte WAV header and PCM writer.

All multi-byte fields are little-endian. The header carries one "fmt "
subchunk (PCM, 16 bytes) followed directly by the "data" subchunk.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, NamedTuple

from speechwav.exceptions import SpeechwavError, WavWriteError
from speechwav.extract.buffer import SampleBufferPool
from speechwav.formats import TARGET_BITS_PER_SAMPLE, TARGET_CHANNELS, TARGET_SAMPLE_RATE

WAV_HEADER_SIZE = 44
PCM_FMT_CHUNK_SIZE = 16
WAVE_FORMAT_PCM = 1

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WavHeader(NamedTuple):
    chunk_id: bytes
    chunk_size: int
    format: bytes
    subchunk1_id: bytes
    subchunk1_size: int
    audio_format: int
    num_channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    subchunk2_id: bytes
    subchunk2_size: int


def build_wav_header(
    total_pcm_bytes: int,
    sample_rate: int = TARGET_SAMPLE_RATE,
    channels: int = TARGET_CHANNELS,
    bits_per_sample: int = TARGET_BITS_PER_SAMPLE,
) -> bytes:
    """Build the 44-byte header for a PCM payload of the given size."""
    block_align = channels * bits_per_sample // 8
    return _HEADER_STRUCT.pack(
        b"RIFF",
        total_pcm_bytes + 36,
        b"WAVE",
        b"fmt ",
        PCM_FMT_CHUNK_SIZE,
        WAVE_FORMAT_PCM,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        b"data",
        total_pcm_bytes,
    )


def parse_wav_header(data: bytes) -> WavHeader:
    """Decode a canonical 44-byte WAV header.

    Raises:
        SpeechwavError: If the data is too short or the chunk ids are wrong
    """
    if len(data) < WAV_HEADER_SIZE:
        raise SpeechwavError(f"WAV header needs {WAV_HEADER_SIZE} bytes, got {len(data)}")

    header = WavHeader(*_HEADER_STRUCT.unpack(data[:WAV_HEADER_SIZE]))
    if header.chunk_id != b"RIFF" or header.format != b"WAVE":
        raise SpeechwavError("Not a RIFF/WAVE file")
    if header.subchunk1_id != b"fmt " or header.subchunk2_id != b"data":
        raise SpeechwavError("Not a canonical PCM WAV header")
    return header


def write_wav(
    sink: BinaryIO,
    pool: SampleBufferPool,
    sample_rate: int = TARGET_SAMPLE_RATE,
    channels: int = TARGET_CHANNELS,
    bits_per_sample: int = TARGET_BITS_PER_SAMPLE,
) -> int:
    """Write header then every pooled chunk, in order, to a byte sink.

    Returns:
        Total bytes written, header included

    Raises:
        WavWriteError: If the sink fails
    """
    total = pool.total_bytes()
    try:
        sink.write(build_wav_header(total, sample_rate, channels, bits_per_sample))
        for chunk in pool.chunks():
            sink.write(chunk)
        sink.flush()
    except OSError as e:
        raise WavWriteError(f"Failed to write WAV data: {e}") from e
    return WAV_HEADER_SIZE + total
