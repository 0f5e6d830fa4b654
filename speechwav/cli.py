"""
speechwav.cli - Typer CLI entry point.

Thin wrapper over the library API: batch extraction and WAV header inspection.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from speechwav import __version__
from speechwav.config import CONFIG_FILENAME, create_default_config, load_config, write_config
from speechwav.exceptions import SpeechwavError
from speechwav.extract.audio import extract_batch
from speechwav.extract.wav import WAV_HEADER_SIZE, parse_wav_header
from speechwav.logging import configure_logging

app = typer.Typer(
    name="speechwav",
    help="Extract speech-ready audio from media files.\n\n"
    "Writes the first audio track of each file as a 16kHz mono 16-bit WAV "
    "suitable for Whisper-style transcription.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"speechwav {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Speechwav - speech-ready audio extraction."""
    pass


@app.command("init-config")
def init_config_command(
    path: str = typer.Option(".", "--path", "-d", help="Directory to write speechwav.yaml in"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Write a speechwav.yaml with the default settings."""
    config_path = Path(path) / CONFIG_FILENAME

    if config_path.exists() and not force:
        console.print(f"[red]Error: config already exists: {config_path}[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(), config_path)
    console.print(f"[green]✓[/green] Wrote default config to {config_path}")


@app.command("extract")
def extract_command(
    sources: list[str] = typer.Argument(..., help="Media file(s) to extract"),
    output_dir: str = typer.Option(".", "--output", "-o", help="Directory for WAV files"),
    force: bool = typer.Option(False, "--force", "-f", help="Re-extract existing WAV files"),
    config_dir: str = typer.Option(
        ".", "--config-dir", "-c", help="Directory containing speechwav.yaml"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Extract audio from media files to 16kHz mono WAV."""
    try:
        config = load_config(Path(config_dir))
    except SpeechwavError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    configure_logging(verbose or config.verbose)

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    try:
        results = extract_batch(
            [Path(s).expanduser().resolve() for s in sources],
            output_path,
            config=config,
            force=force,
            console=console,
        )
    except SpeechwavError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"\n[green]✓[/green] Extracted {results['extracted']}, "
        f"skipped {results['skipped']}, failed {results['failed']}"
    )
    if results["failed"]:
        raise typer.Exit(1)


@app.command("inspect")
def inspect_command(
    wav_file: str = typer.Argument(..., help="WAV file to inspect"),
) -> None:
    """Show the header fields of a WAV file."""
    path = Path(wav_file)
    if not path.exists():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(1)

    with open(path, "rb") as f:
        data = f.read(WAV_HEADER_SIZE)

    try:
        header = parse_wav_header(data)
    except SpeechwavError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=path.name)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for field, value in header._asdict().items():
        if isinstance(value, bytes):
            value = value.decode("ascii", errors="replace")
        table.add_row(field, str(value))
    console.print(table)

    payload = path.stat().st_size - WAV_HEADER_SIZE
    if payload != header.subchunk2_size:
        console.print(
            f"[yellow]Warning: data size {header.subchunk2_size} "
            f"does not match payload size {payload}[/yellow]"
        )
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
