"""
speechwav.extract.buffer - In-memory accumulation of converted PCM.
"""

from __future__ import annotations

from speechwav.exceptions import SpeechwavError


class SampleBufferPool:
    """Ordered converted chunks plus their running byte total.

    Filled by the decode loop, then closed and handed to the WAV writer.
    Not thread-safe; a single routine owns it for the whole extraction.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self._total_bytes = 0
        self._closed = False

    def append(self, chunk: bytes) -> None:
        if self._closed:
            raise SpeechwavError("Cannot append to a closed buffer pool")
        self._chunks.append(chunk)
        self._total_bytes += len(chunk)

    def total_bytes(self) -> int:
        return self._total_bytes

    def chunks(self) -> tuple[bytes, ...]:
        return tuple(self._chunks)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._chunks)
