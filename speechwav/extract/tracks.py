"""
speechwav.extract.tracks - Locate the first audio track of a container.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from speechwav.exceptions import DecodeError, NoAudioTrackError
from speechwav.formats import AudioFormatDescriptor
from speechwav.media.base import Demuxer

logger = logging.getLogger(__name__)


def select_audio_track(demuxer: Demuxer) -> tuple[int, AudioFormatDescriptor]:
    """Return the index and format of the first audio track.

    Tracks are scanned in index order and the first one whose mime type is in
    the ``audio/`` category wins; later audio tracks are ignored.

    Raises:
        NoAudioTrackError: If no track is audio-typed
        DecodeError: If the audio track does not declare a rate or channel count
    """
    for index in range(demuxer.track_count()):
        track = demuxer.track_format(index)
        if not track.is_audio:
            continue

        logger.debug(f"Found audio track {index}: {track.mime_type}")
        try:
            return index, AudioFormatDescriptor(
                sample_rate_hz=track.sample_rate_hz,
                channel_count=track.channel_count,
                codec_mime_type=track.mime_type,
                extradata=track.extradata,
            )
        except ValidationError as e:
            raise DecodeError(f"Audio track {index} has an unusable format: {e}") from e

    raise NoAudioTrackError("No audio track found")
