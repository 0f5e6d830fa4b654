"""
speechwav.extract.convert - Per-frame PCM format conversion.

Turns one decoded frame (s16le, interleaved, any rate and channel count) into
mono 16 kHz s16le: channel mixdown first, then linear-interpolation
resampling. There is no anti-aliasing filter; the output feeds speech
recognition, not playback.
"""

from __future__ import annotations

import logging

import numpy as np

from speechwav.exceptions import ConversionError
from speechwav.formats import TARGET_CHANNELS, TARGET_SAMPLE_RATE

logger = logging.getLogger(__name__)

SAMPLE_DTYPE = np.dtype("<i2")


def mixdown_to_mono(samples: np.ndarray, channels: int) -> np.ndarray:
    """Average interleaved channels into one.

    Each output sample is the integer sum of a frame's channel samples divided
    by the channel count, truncated toward zero. A trailing partial frame is
    dropped.

    Args:
        samples: Interleaved int16 samples
        channels: Number of interleaved channels

    Returns:
        Mono int16 samples
    """
    if channels <= 1:
        return samples

    frames = len(samples) // channels
    grouped = samples[: frames * channels].reshape(frames, channels).astype(np.int64)
    sums = grouped.sum(axis=1)
    mono = np.sign(sums) * (np.abs(sums) // channels)
    return mono.astype(np.int16)


def resample_linear(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Resample mono int16 samples by linear interpolation.

    Output length is floor(n * dst_rate / src_rate). Output sample i sits at
    source position i * src_rate / dst_rate and blends the sample at the
    integer index with the next one by the fractional part. When there is no
    next sample the sample at the index is used as is; when the index itself
    is past the end the output sample is omitted. Blended values truncate
    toward zero.

    Args:
        samples: Mono int16 samples
        src_rate: Source sample rate in Hz
        dst_rate: Destination sample rate in Hz

    Returns:
        Resampled int16 samples
    """
    n = len(samples)
    if src_rate == dst_rate or n == 0:
        return samples

    out_len = n * dst_rate // src_rate
    positions = np.arange(out_len, dtype=np.int64) * src_rate
    index = positions // dst_rate
    frac = (positions % dst_rate) / dst_rate

    in_bounds = index < n
    index = index[in_bounds]
    frac = frac[in_bounds]

    source = samples.astype(np.float64)
    current = source[index]
    following = source[np.minimum(index + 1, n - 1)]
    blended = np.where(
        index + 1 < n,
        current * (1.0 - frac) + following * frac,
        current,
    )
    return blended.astype(np.int16)


def convert_frame(
    pcm: bytes,
    src_rate: int,
    src_channels: int,
    dst_rate: int = TARGET_SAMPLE_RATE,
    dst_channels: int = TARGET_CHANNELS,
) -> bytes:
    """Convert one PCM frame to the target rate and channel layout.

    Never raises. A frame that cannot be converted is logged and contributes
    no output, so a single bad frame shortens the result instead of failing
    the extraction.

    Args:
        pcm: s16le interleaved samples; an odd trailing byte is ignored
        src_rate: Source sample rate in Hz
        src_channels: Source channel count
        dst_rate: Target sample rate in Hz
        dst_channels: Target channel count

    Returns:
        s16le bytes in the target format, or b"" for empty or failed frames
    """
    try:
        if src_rate <= 0 or src_channels < 1:
            raise ConversionError(f"Invalid source format: {src_rate}Hz, {src_channels} channels")

        if len(pcm) < 2:
            return b""
        samples = np.frombuffer(pcm, dtype=SAMPLE_DTYPE, count=len(pcm) // 2)

        if src_channels > 1 and dst_channels == 1:
            samples = mixdown_to_mono(samples, src_channels)

        if src_rate != dst_rate:
            samples = resample_linear(samples, src_rate, dst_rate)

        return samples.astype(SAMPLE_DTYPE).tobytes()

    except Exception as e:
        logger.warning(f"Dropping frame after conversion error: {e}")
        return b""
