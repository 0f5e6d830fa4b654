"""
speechwav.media.pyav - PyAV-backed demuxer and decoder.

PyAVDemuxer walks the packets of one container stream with a peek/advance
cursor. PyAVDecoder wraps an FFmpeg codec context behind the slot-queue
handshake from speechwav.media.base: a worker thread takes submitted packets,
decodes them, converts each frame to packed s16 at the source rate and
layout, and queues the PCM for the caller to drain.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterator
from fractions import Fraction
from pathlib import Path
from typing import Any

import av
from av.audio.resampler import AudioResampler
from av.error import FFmpegError

from speechwav.exceptions import DecodeError
from speechwav.formats import AudioFormatDescriptor, TrackFormat
from speechwav.media.base import BUFFER_FLAG_END_OF_STREAM, BufferInfo

logger = logging.getLogger(__name__)

MICROSECONDS = Fraction(1, 1_000_000)


def layout_name(channels: int) -> str:
    """FFmpeg channel layout string for a channel count."""
    if channels == 1:
        return "mono"
    if channels == 2:
        return "stereo"
    return f"{channels}c"


class PyAVDemuxer:
    """Track cursor over a PyAV input container."""

    def __init__(self, container: Any) -> None:
        self._container = container
        self._packets: Iterator[Any] | None = None
        self._current: Any = None

    @classmethod
    def open(cls, path: str | Path) -> PyAVDemuxer:
        try:
            container = av.open(str(path))
        except (FFmpegError, OSError) as e:
            raise DecodeError(f"Cannot open {path}: {e}") from e
        return cls(container)

    def track_count(self) -> int:
        return len(self._container.streams)

    def track_format(self, index: int) -> TrackFormat:
        stream = self._container.streams[index]
        ctx = stream.codec_context
        codec_name = ctx.name if ctx is not None else "unknown"

        if stream.type != "audio":
            return TrackFormat(mime_type=f"{stream.type}/{codec_name}")

        return TrackFormat(
            mime_type=f"audio/{codec_name}",
            sample_rate_hz=ctx.sample_rate or None,
            channel_count=len(ctx.layout.channels) or None,
            extradata=ctx.extradata,
        )

    def select_track(self, index: int) -> None:
        stream = self._container.streams[index]
        self._packets = self._container.demux(stream)
        self._current = self._next_packet()

    def read_sample(self) -> bytes | None:
        if self._current is None:
            return None
        return bytes(self._current)

    def sample_timestamp(self) -> int:
        packet = self._current
        if packet is None or packet.pts is None or packet.time_base is None:
            return 0
        return int(packet.pts * packet.time_base / MICROSECONDS)

    def advance(self) -> None:
        self._current = self._next_packet()

    def release(self) -> None:
        self._packets = None
        self._current = None
        self._container.close()

    def _next_packet(self) -> Any:
        if self._packets is None:
            raise DecodeError("No track selected")
        # demux() ends with an empty flush packet per stream
        for packet in self._packets:
            if packet.size > 0:
                return packet
        return None


class PyAVDecoder:
    """FFmpeg audio decoder driven through input and output slots."""

    def __init__(self, context: Any, input_slots: int = 4) -> None:
        self._context = context
        self._input_slots = input_slots
        self._resampler: AudioResampler | None = None
        self._free_slots: queue.Queue[int] = queue.Queue()
        self._pending: queue.Queue[tuple[int, bytes, int, int] | None] = queue.Queue()
        self._outputs: queue.Queue[tuple[int, bytes, BufferInfo] | None] = queue.Queue()
        self._held: dict[int, bytes] = {}
        self._output_counter = 0
        self._worker: threading.Thread | None = None
        self._error: Exception | None = None

    @classmethod
    def create_for(cls, mime_type: str, input_slots: int = 4) -> PyAVDecoder:
        if not mime_type.startswith("audio/"):
            raise DecodeError(f"Not an audio codec: {mime_type}")
        codec_name = mime_type.split("/", 1)[1]
        try:
            context = av.CodecContext.create(codec_name, "r")
        except (FFmpegError, ValueError) as e:
            raise DecodeError(f"No decoder for {mime_type}: {e}") from e
        return cls(context, input_slots=input_slots)

    def configure(self, audio_format: AudioFormatDescriptor) -> None:
        try:
            self._context.sample_rate = audio_format.sample_rate_hz
            self._context.layout = layout_name(audio_format.channel_count)
            if audio_format.extradata:
                self._context.extradata = audio_format.extradata
        except (AttributeError, ValueError, FFmpegError) as e:
            raise DecodeError(f"Cannot configure decoder for {audio_format.describe()}: {e}") from e

    def start(self) -> None:
        if self._worker is not None:
            return
        for slot in range(self._input_slots):
            self._free_slots.put(slot)
        self._worker = threading.Thread(target=self._run, name="speechwav-decoder", daemon=True)
        self._worker.start()

    def dequeue_input_slot(self, timeout_us: int) -> int | None:
        try:
            return self._free_slots.get(timeout=timeout_us / 1_000_000)
        except queue.Empty:
            return None

    def submit_input(self, slot: int, data: bytes, timestamp_us: int, flags: int = 0) -> None:
        if self._worker is None:
            raise DecodeError("Decoder not started")
        self._pending.put((slot, data, timestamp_us, flags))

    def dequeue_output_slot(self, timeout_us: int) -> tuple[int, BufferInfo] | None:
        try:
            item = self._outputs.get(timeout=timeout_us / 1_000_000)
        except queue.Empty:
            return None
        if item is None:
            raise DecodeError(f"Decoding failed: {self._error}") from self._error
        slot, data, info = item
        self._held[slot] = data
        return slot, info

    def read_output_buffer(self, slot: int) -> bytes:
        try:
            return self._held[slot]
        except KeyError:
            raise DecodeError(f"Output slot {slot} is not held") from None

    def release_output_slot(self, slot: int) -> None:
        if self._held.pop(slot, None) is None:
            raise DecodeError(f"Output slot {slot} is not held")

    def stop(self) -> None:
        if self._worker is None:
            return
        self._pending.put(None)
        self._worker.join()
        self._worker = None

    def release(self) -> None:
        self._held.clear()
        self._resampler = None
        self._context = None

    def _run(self) -> None:
        while True:
            item = self._pending.get()
            if item is None:
                return
            slot, data, timestamp_us, flags = item
            try:
                if data:
                    packet = av.Packet(data)
                    packet.pts = timestamp_us
                    packet.time_base = MICROSECONDS
                    for frame in self._context.decode(packet):
                        self._emit_frame(frame, timestamp_us)
                if flags & BUFFER_FLAG_END_OF_STREAM:
                    self._flush(timestamp_us)
            except Exception as e:
                logger.debug(f"Decoder worker failed: {e}")
                self._error = e
                self._outputs.put(None)
                return
            finally:
                self._free_slots.put(slot)

    def _emit_frame(self, frame: Any, timestamp_us: int) -> None:
        if frame.format.name == "s16":
            self._put_output(frame, timestamp_us)
            return

        # only the sample format changes; rate and layout stay as decoded
        if self._resampler is None:
            self._resampler = AudioResampler(
                format="s16",
                layout=frame.layout,
                rate=frame.sample_rate,
            )
        if frame.time_base is None:
            frame.time_base = Fraction(1, frame.sample_rate)
        for packed in self._resampler.resample(frame):
            self._put_output(packed, timestamp_us)

    def _flush(self, timestamp_us: int) -> None:
        for frame in self._context.decode(None):
            self._emit_frame(frame, timestamp_us)
        if self._resampler is not None:
            for packed in self._resampler.resample(None):
                if packed is not None:
                    self._put_output(packed, timestamp_us)
        self._queue_output(b"", BufferInfo(0, timestamp_us, BUFFER_FLAG_END_OF_STREAM))

    def _put_output(self, frame: Any, timestamp_us: int) -> None:
        pcm = frame.to_ndarray().astype("<i2").tobytes()
        self._queue_output(pcm, BufferInfo(len(pcm), timestamp_us, 0))

    def _queue_output(self, data: bytes, info: BufferInfo) -> None:
        slot = self._output_counter
        self._output_counter += 1
        self._outputs.put((slot, data, info))
