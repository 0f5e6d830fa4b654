"""
speechwav.extract.audio - Media file to speech-ready WAV.

Extracts the first audio track of a media file and writes it as a
16kHz mono 16-bit PCM WAV for transcription (Whisper).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from speechwav.config import ExtractionConfig
from speechwav.exceptions import (
    DependencyError,
    ExtractionError,
    SpeechwavError,
    WavWriteError,
)
from speechwav.extract.buffer import SampleBufferPool
from speechwav.extract.decode import decode_track
from speechwav.extract.tracks import select_audio_track
from speechwav.extract.wav import write_wav
from speechwav.formats import TARGET_BYTE_RATE
from speechwav.media.base import DecoderFactory, DemuxerFactory

logger = logging.getLogger(__name__)


def default_factories(config: ExtractionConfig) -> tuple[DemuxerFactory, DecoderFactory]:
    """Return PyAV-backed demuxer and decoder factories.

    Raises:
        DependencyError: If PyAV is not installed
    """
    try:
        from speechwav.media.pyav import PyAVDecoder, PyAVDemuxer
    except ImportError as e:
        raise DependencyError(
            "av",
            "PyAV is required to demux and decode media files",
            install_hint="pip install av",
        ) from e

    def decoder_factory(mime_type: str) -> PyAVDecoder:
        return PyAVDecoder.create_for(mime_type, input_slots=config.decoder_input_slots)

    return PyAVDemuxer.open, decoder_factory


def release_all(sink: Any, decoder: Any, decoder_started: bool, demuxer: Any) -> None:
    """Close the output, stop and release the decoder, release the demuxer.

    Every step runs even if an earlier one fails. Failures are logged only:
    by this point the WAV is either complete or the extraction has already
    failed for another reason.
    """
    steps = []
    if sink is not None:
        steps.append(("output close", sink.close))
    if decoder is not None:
        if decoder_started:
            steps.append(("decoder stop", decoder.stop))
        steps.append(("decoder release", decoder.release))
    if demuxer is not None:
        steps.append(("demuxer release", demuxer.release))

    for name, step in steps:
        try:
            step()
        except Exception as e:
            logger.error(f"Error during cleanup ({name}): {e}")


def extract_audio(
    source_path: Path,
    destination_path: Path,
    config: ExtractionConfig | None = None,
    *,
    demuxer_factory: DemuxerFactory | None = None,
    decoder_factory: DecoderFactory | None = None,
    console=None,
) -> dict[str, Any]:
    """Extract the first audio track of a media file to a 16kHz mono WAV.

    The whole converted stream is held in memory and the destination is only
    opened once decoding has finished, so a failed decode never touches it.
    Output file, decoder and demuxer are released on every exit path; a
    failure while releasing them is logged and does not fail the extraction.

    Args:
        source_path: Path to source media file
        destination_path: Output WAV path (overwritten if present)
        config: Extraction settings; defaults when omitted
        demuxer_factory: Opens a demuxer for a path (PyAV by default)
        decoder_factory: Creates a decoder for a codec mime type (PyAV by default)
        console: Optional rich console for output

    Returns:
        Dict with extraction results

    Raises:
        ExtractionError: If any stage fails (NoAudioTrackError, DecodeError
            and WavWriteError are subclasses)
        DependencyError: If the default PyAV backend is unavailable
    """
    config = config or ExtractionConfig()
    source_path = Path(source_path)
    destination_path = Path(destination_path)

    if demuxer_factory is None or decoder_factory is None:
        default_demuxer, default_decoder = default_factories(config)
        demuxer_factory = demuxer_factory or default_demuxer
        decoder_factory = decoder_factory or default_decoder

    if not source_path.exists():
        raise ExtractionError(f"Source not found: {source_path}")
    if destination_path.exists() and not config.overwrite:
        raise ExtractionError(f"Destination exists and overwrite is disabled: {destination_path}")

    result: dict[str, Any] = {
        "source": str(source_path),
        "destination": str(destination_path),
        "success": False,
    }

    demuxer = None
    decoder = None
    decoder_started = False
    sink = None
    try:
        try:
            demuxer = demuxer_factory(str(source_path))

            track_index, audio_format = select_audio_track(demuxer)
            demuxer.select_track(track_index)
            logger.info(f"Source audio: {audio_format.describe()}")

            decoder = decoder_factory(audio_format.codec_mime_type)
            decoder.configure(audio_format)
            decoder.start()
            decoder_started = True

            if console:
                console.print(f"[dim]  Decoding {audio_format.describe()}...[/dim]")

            pool = SampleBufferPool()
            stats = decode_track(
                demuxer,
                decoder,
                audio_format,
                pool,
                timeout_us=config.dequeue_timeout_us,
            )

            try:
                destination_path.parent.mkdir(parents=True, exist_ok=True)
                sink = open(destination_path, "wb")
            except OSError as e:
                raise WavWriteError(f"Cannot open {destination_path}: {e}") from e

            file_size = write_wav(sink, pool)
        finally:
            release_all(sink, decoder, decoder_started, demuxer)

    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"Audio extraction failed: {e}") from e

    logger.info(f"Wrote {destination_path} ({pool.total_bytes()} PCM bytes)")

    result.update(
        {
            "success": True,
            "track_index": track_index,
            "source_sample_rate": audio_format.sample_rate_hz,
            "source_channels": audio_format.channel_count,
            "codec": audio_format.codec_mime_type,
            "pcm_bytes": pool.total_bytes(),
            "file_size": file_size,
            "duration_seconds": pool.total_bytes() / TARGET_BYTE_RATE,
            "stats": stats,
        }
    )
    return result


def extract_audio_to_wav(
    source_path: str | Path,
    destination_path: str | Path,
    config: ExtractionConfig | None = None,
    *,
    demuxer_factory: DemuxerFactory | None = None,
    decoder_factory: DecoderFactory | None = None,
) -> bool:
    """Extract audio to a speech-ready WAV, reporting only success or failure.

    Failures are logged. A partially written destination is not removed.
    """
    try:
        extract_audio(
            Path(source_path),
            Path(destination_path),
            config,
            demuxer_factory=demuxer_factory,
            decoder_factory=decoder_factory,
        )
    except SpeechwavError as e:
        logger.error(f"Audio extraction failed for {source_path}: {e}")
        return False
    return True


def extract_batch(
    sources: list[Path],
    output_dir: Path,
    config: ExtractionConfig | None = None,
    force: bool = False,
    console=None,
    **factories: Any,
) -> dict[str, Any]:
    """Extract audio for several media files into one directory.

    Each source becomes ``<stem>_16k.wav`` in ``output_dir``.

    Args:
        sources: Media files to extract
        output_dir: Directory for the WAV files
        config: Extraction settings; defaults when omitted
        force: Re-extract even if the WAV already exists
        console: Optional rich console for output
        **factories: demuxer_factory / decoder_factory overrides

    Returns:
        Dict with extraction summary
    """
    from rich.table import Table

    config = config or ExtractionConfig()
    if force and not config.overwrite:
        config = config.model_copy(update={"overwrite": True})

    results: dict[str, Any] = {
        "extracted": 0,
        "skipped": 0,
        "failed": 0,
        "errors": [],
    }

    table = Table(title="Audio Extraction")
    table.add_column("Source", style="cyan")
    table.add_column("WAV", style="green")
    table.add_column("Duration", style="green")
    table.add_column("Status", style="yellow")

    for source in sources:
        source = Path(source)
        destination = output_dir / f"{source.stem}_16k.wav"

        if destination.exists() and not force:
            table.add_row(
                source.name,
                format_size(destination),
                "-",
                "[dim]Skipped (already extracted)[/dim]",
            )
            results["skipped"] += 1
            continue

        if not source.exists():
            table.add_row(source.name, "-", "-", "[red]Source not found[/red]")
            results["failed"] += 1
            results["errors"].append(
                {
                    "source": str(source),
                    "error": "Source file not found",
                }
            )
            continue

        try:
            extracted = extract_audio(source, destination, config, console=console, **factories)

            table.add_row(
                source.name,
                format_size(destination),
                f"{extracted['duration_seconds']:.1f}s",
                "[green]✓ Extracted[/green]",
            )
            results["extracted"] += 1

        except SpeechwavError as e:
            table.add_row(source.name, "-", "-", f"[red]Error: {e}[/red]")
            results["failed"] += 1
            results["errors"].append(
                {
                    "source": str(source),
                    "error": str(e),
                }
            )

    if console:
        console.print(table)

    return results


def format_size(path: Path) -> str:
    """Format file size in human-readable format."""
    if not path.exists():
        return "-"
    size = path.stat().st_size
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
