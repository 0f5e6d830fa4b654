"""
speechwav.exceptions - Custom exception classes.

All Speechwav-specific exceptions inherit from SpeechwavError.
"""


class SpeechwavError(Exception):
    """Base exception for all Speechwav errors."""

    pass


class ConfigError(SpeechwavError):
    """Configuration loading or validation error."""

    pass


class ExtractionError(SpeechwavError):
    """Audio extraction error."""

    pass


class NoAudioTrackError(ExtractionError):
    """Source container has no audio-typed track."""

    pass


class DecodeError(ExtractionError):
    """Demuxer or decoder failed during the feed/drain loop."""

    pass


class WavWriteError(ExtractionError):
    """Output file could not be created or written."""

    pass


class ConversionError(SpeechwavError):
    """A single PCM frame could not be converted to the target format."""

    pass


class DependencyError(SpeechwavError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
