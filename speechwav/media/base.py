"""
speechwav.media.base - Demuxer and decoder protocols.

Decoders follow a slot-queue handshake: callers borrow an input slot, submit
compressed bytes into it, then poll for output slots carrying decoded PCM and
hand each one back once read. Both polls wait at most a bounded timeout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from speechwav.formats import AudioFormatDescriptor, TrackFormat

BUFFER_FLAG_END_OF_STREAM = 4


@dataclass
class BufferInfo:
    """Metadata for one decoder output slot."""

    size: int = 0
    presentation_time_us: int = 0
    flags: int = 0

    @property
    def end_of_stream(self) -> bool:
        return bool(self.flags & BUFFER_FLAG_END_OF_STREAM)


class Demuxer(Protocol):
    def track_count(self) -> int: ...

    def track_format(self, index: int) -> TrackFormat: ...

    def select_track(self, index: int) -> None: ...

    def read_sample(self) -> bytes | None:
        """Return the compressed sample under the cursor, or None at end of stream."""
        ...

    def sample_timestamp(self) -> int:
        """Presentation time of the current sample in microseconds."""
        ...

    def advance(self) -> None: ...

    def release(self) -> None: ...


class Decoder(Protocol):
    def configure(self, audio_format: AudioFormatDescriptor) -> None: ...

    def start(self) -> None: ...

    def dequeue_input_slot(self, timeout_us: int) -> int | None: ...

    def submit_input(self, slot: int, data: bytes, timestamp_us: int, flags: int = 0) -> None: ...

    def dequeue_output_slot(self, timeout_us: int) -> tuple[int, BufferInfo] | None: ...

    def read_output_buffer(self, slot: int) -> bytes: ...

    def release_output_slot(self, slot: int) -> None: ...

    def stop(self) -> None: ...

    def release(self) -> None: ...


DemuxerFactory = Callable[[str], Demuxer]
DecoderFactory = Callable[[str], Decoder]
