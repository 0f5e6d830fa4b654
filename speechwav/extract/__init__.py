"""
speechwav.extract - Audio extraction pipeline.

Track selection → feed/drain decode loop → per-frame mixdown and resample →
in-memory buffer pool → WAV serialization.
"""

from __future__ import annotations
