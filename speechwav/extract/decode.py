"""
speechwav.extract.decode - Feed/drain loop between demuxer and decoder.

Each iteration offers at most one compressed sample to the decoder and takes
at most one decoded frame back, both through bounded waits. Input and output
end-of-stream are tracked separately; the loop only stops once the decoder
reports output end-of-stream.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from speechwav.exceptions import DecodeError
from speechwav.extract.buffer import SampleBufferPool
from speechwav.extract.convert import convert_frame
from speechwav.formats import TARGET_CHANNELS, TARGET_SAMPLE_RATE, AudioFormatDescriptor
from speechwav.media.base import BUFFER_FLAG_END_OF_STREAM, Decoder, Demuxer

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_US = 10_000


class DecodeState(Enum):
    FEEDING = "feeding"
    DRAINING = "draining"
    DONE = "done"


class DecodeLoop:
    """Drives one extraction's demuxer and decoder to end of stream."""

    def __init__(
        self,
        demuxer: Demuxer,
        decoder: Decoder,
        audio_format: AudioFormatDescriptor,
        pool: SampleBufferPool,
        timeout_us: int = DEFAULT_TIMEOUT_US,
    ) -> None:
        self.demuxer = demuxer
        self.decoder = decoder
        self.audio_format = audio_format
        self.pool = pool
        self.timeout_us = timeout_us

        self.input_eos = False
        self.output_eos = False
        self.iterations = 0
        self.samples_fed = 0
        self.frames_decoded = 0
        self.frames_dropped = 0

    @property
    def state(self) -> DecodeState:
        if self.output_eos:
            return DecodeState.DONE
        if self.input_eos:
            return DecodeState.DRAINING
        return DecodeState.FEEDING

    def run(self) -> dict[str, Any]:
        """Run until output end-of-stream, then close the pool.

        Returns:
            Dict with loop statistics

        Raises:
            DecodeError: On any demuxer or decoder failure
        """
        try:
            while not self.output_eos:
                self.iterations += 1
                if not self.input_eos:
                    self._feed()
                self._drain()
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"Decode loop failed: {e}") from e

        self.pool.close()
        logger.debug(
            f"Decoded {self.frames_decoded} frames from {self.samples_fed} samples "
            f"in {self.iterations} iterations, {self.pool.total_bytes()} PCM bytes"
        )
        return {
            "iterations": self.iterations,
            "samples_fed": self.samples_fed,
            "frames_decoded": self.frames_decoded,
            "frames_dropped": self.frames_dropped,
            "pcm_bytes": self.pool.total_bytes(),
        }

    def _feed(self) -> None:
        slot = self.decoder.dequeue_input_slot(self.timeout_us)
        if slot is None:
            return

        data = self.demuxer.read_sample()
        if data is None:
            self.decoder.submit_input(slot, b"", 0, BUFFER_FLAG_END_OF_STREAM)
            self.input_eos = True
            logger.debug("Input end of stream submitted")
            return

        self.decoder.submit_input(slot, data, self.demuxer.sample_timestamp(), 0)
        self.demuxer.advance()
        self.samples_fed += 1

    def _drain(self) -> None:
        dequeued = self.decoder.dequeue_output_slot(self.timeout_us)
        if dequeued is None:
            return

        slot, info = dequeued
        try:
            if info.size > 0:
                self._convert(self.decoder.read_output_buffer(slot))
        finally:
            self.decoder.release_output_slot(slot)

        if info.end_of_stream:
            self.output_eos = True
            logger.debug("Output end of stream reached")

    def _convert(self, pcm: bytes) -> None:
        self.frames_decoded += 1
        chunk = convert_frame(
            pcm,
            self.audio_format.sample_rate_hz,
            self.audio_format.channel_count,
            TARGET_SAMPLE_RATE,
            TARGET_CHANNELS,
        )
        if chunk:
            self.pool.append(chunk)
        else:
            self.frames_dropped += 1


def decode_track(
    demuxer: Demuxer,
    decoder: Decoder,
    audio_format: AudioFormatDescriptor,
    pool: SampleBufferPool,
    timeout_us: int = DEFAULT_TIMEOUT_US,
) -> dict[str, Any]:
    """Decode the selected track into the pool. See DecodeLoop.run."""
    return DecodeLoop(demuxer, decoder, audio_format, pool, timeout_us).run()
