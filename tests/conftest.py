"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Callable

import numpy as np
import pytest
import yaml

from speechwav.formats import TrackFormat
from speechwav.media.base import BUFFER_FLAG_END_OF_STREAM, BufferInfo


class FakeDemuxer:
    """In-memory demuxer whose samples are already raw PCM."""

    def __init__(self, tracks: list[TrackFormat], samples: list[bytes]) -> None:
        self.tracks = tracks
        self.samples = samples
        self.path: str | None = None
        self.selected: int | None = None
        self.cursor = 0
        self.released = False
        self.release_error: Exception | None = None

    def track_count(self) -> int:
        return len(self.tracks)

    def track_format(self, index: int) -> TrackFormat:
        return self.tracks[index]

    def select_track(self, index: int) -> None:
        self.selected = index

    def read_sample(self) -> bytes | None:
        if self.cursor >= len(self.samples):
            return None
        return self.samples[self.cursor]

    def sample_timestamp(self) -> int:
        return self.cursor * 1000

    def advance(self) -> None:
        self.cursor += 1

    def release(self) -> None:
        self.released = True
        if self.release_error is not None:
            raise self.release_error


class FakeDecoder:
    """Pass-through decoder with the slot-queue handshake.

    Args:
        busy_polls: Number of initial input polls that time out
        fail_on_submit: Raise on this (1-based) submit call
        eos_with_last_data: Hold each decoded buffer back by one submit and
            deliver the last one carrying the end-of-stream flag
    """

    def __init__(
        self,
        mime_type: str,
        busy_polls: int = 0,
        fail_on_submit: int | None = None,
        eos_with_last_data: bool = False,
    ):
        self.mime_type = mime_type
        self.busy_polls = busy_polls
        self.fail_on_submit = fail_on_submit
        self.eos_with_last_data = eos_with_last_data
        self._held_back: tuple[bytes, int] | None = None
        self.configured_with = None
        self.started = False
        self.stopped = False
        self.stop_error: Exception | None = None
        self.released = False
        self.submitted: list[tuple[bytes, int, int]] = []
        self.released_slots: list[int] = []
        self._outputs: deque[tuple[int, bytes, BufferInfo]] = deque()
        self._held: dict[int, bytes] = {}
        self._next_slot = 0

    def configure(self, audio_format) -> None:
        self.configured_with = audio_format

    def start(self) -> None:
        self.started = True

    def dequeue_input_slot(self, timeout_us: int) -> int | None:
        if self.busy_polls:
            self.busy_polls -= 1
            return None
        return 0

    def submit_input(self, slot: int, data: bytes, timestamp_us: int, flags: int = 0) -> None:
        self.submitted.append((data, timestamp_us, flags))
        if self.fail_on_submit is not None and len(self.submitted) >= self.fail_on_submit:
            raise RuntimeError("codec exploded")
        if self.eos_with_last_data:
            self._submit_held_back(data, timestamp_us, flags)
            return
        if data:
            self._queue(data, BufferInfo(len(data), timestamp_us, 0))
        if flags & BUFFER_FLAG_END_OF_STREAM:
            self._queue(b"", BufferInfo(0, timestamp_us, BUFFER_FLAG_END_OF_STREAM))

    def _submit_held_back(self, data: bytes, timestamp_us: int, flags: int) -> None:
        if data:
            if self._held_back is not None:
                previous, previous_ts = self._held_back
                self._queue(previous, BufferInfo(len(previous), previous_ts, 0))
            self._held_back = (data, timestamp_us)
        if flags & BUFFER_FLAG_END_OF_STREAM:
            last, last_ts = self._held_back or (b"", timestamp_us)
            self._held_back = None
            self._queue(last, BufferInfo(len(last), last_ts, BUFFER_FLAG_END_OF_STREAM))

    def dequeue_output_slot(self, timeout_us: int) -> tuple[int, BufferInfo] | None:
        if not self._outputs:
            return None
        slot, data, info = self._outputs.popleft()
        self._held[slot] = data
        return slot, info

    def read_output_buffer(self, slot: int) -> bytes:
        return self._held[slot]

    def release_output_slot(self, slot: int) -> None:
        del self._held[slot]
        self.released_slots.append(slot)

    def stop(self) -> None:
        self.stopped = True
        if self.stop_error is not None:
            raise self.stop_error

    def release(self) -> None:
        self.released = True

    def _queue(self, data: bytes, info: BufferInfo) -> None:
        self._outputs.append((self._next_slot, data, info))
        self._next_slot += 1


class FakeMedia:
    """Factory pair handing out one fake demuxer and recording the decoder."""

    def __init__(self, tracks: list[TrackFormat], samples: list[bytes], **decoder_kwargs) -> None:
        self.demuxer = FakeDemuxer(tracks, samples)
        self.decoder: FakeDecoder | None = None
        self.decoder_kwargs = decoder_kwargs

    def open_demuxer(self, path: str) -> FakeDemuxer:
        self.demuxer.path = path
        return self.demuxer

    def create_decoder(self, mime_type: str) -> FakeDecoder:
        self.decoder = FakeDecoder(mime_type, **self.decoder_kwargs)
        return self.decoder

    @property
    def factories(self) -> dict[str, Callable]:
        return {
            "demuxer_factory": self.open_demuxer,
            "decoder_factory": self.create_decoder,
        }


def audio_track(rate: int = 48000, channels: int = 2, codec: str = "audio/pcm_s16le") -> TrackFormat:
    return TrackFormat(mime_type=codec, sample_rate_hz=rate, channel_count=channels)


@pytest.fixture
def make_media() -> Callable[..., FakeMedia]:
    """Build a FakeMedia; defaults to one stereo 48kHz track and no samples."""

    def _make(
        tracks: list[TrackFormat] | None = None,
        samples: list[bytes] | None = None,
        **decoder_kwargs,
    ) -> FakeMedia:
        if tracks is None:
            tracks = [audio_track()]
        return FakeMedia(tracks, samples or [], **decoder_kwargs)

    return _make


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """A placeholder media file; fake demuxers never read it."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"fake media content")
    return path


@pytest.fixture
def stereo_second() -> list[bytes]:
    """One second of 48kHz stereo PCM split into 1024-frame packets."""
    frames = 48000
    left = (np.sin(np.linspace(0, 2 * np.pi * 440, frames)) * 8000).astype(np.int16)
    right = (left // 2).astype(np.int16)
    interleaved = np.column_stack([left, right]).reshape(-1).astype("<i2").tobytes()
    packet = 1024 * 2 * 2
    return [interleaved[i : i + packet] for i in range(0, len(interleaved), packet)]


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Directory holding a speechwav.yaml with non-default values."""
    directory = tmp_path / "conf"
    directory.mkdir()
    with open(directory / "speechwav.yaml", "w") as f:
        yaml.dump({"dequeue_timeout_us": 2500, "decoder_input_slots": 2}, f)
    return directory
