"""
Speechwav - speech-ready audio extraction.

Pulls the first audio track out of any media container, decodes it, mixes it
down to mono, resamples it to 16 kHz and writes a 16-bit PCM WAV file that
Whisper-style transcription engines can consume directly.
"""

__version__ = "0.1.0"

from speechwav.extract.audio import extract_audio, extract_audio_to_wav

__all__ = ["__version__", "extract_audio", "extract_audio_to_wav"]
