"""Tests for speechwav CLI commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from speechwav import __version__
from speechwav.cli import app
from speechwav.config import ExtractionConfig, load_config
from speechwav.extract.wav import build_wav_header

runner = CliRunner()


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInitConfigCommand:
    def test_writes_default_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["init-config", "-d", str(tmp_path)])

        assert result.exit_code == 0
        assert (tmp_path / "speechwav.yaml").exists()
        assert load_config(tmp_path) == ExtractionConfig()

    def test_refuses_existing_config(self, tmp_path: Path) -> None:
        (tmp_path / "speechwav.yaml").write_text("decoder_input_slots: 2\n")

        result = runner.invoke(app, ["init-config", "-d", str(tmp_path)])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert load_config(tmp_path).decoder_input_slots == 2

    def test_force_overwrites(self, tmp_path: Path) -> None:
        (tmp_path / "speechwav.yaml").write_text("decoder_input_slots: 2\n")

        result = runner.invoke(app, ["init-config", "-d", str(tmp_path), "--force"])

        assert result.exit_code == 0
        assert load_config(tmp_path) == ExtractionConfig()


class TestInspectCommand:
    def test_inspect_valid_wav(self, tmp_path: Path) -> None:
        wav = tmp_path / "speech.wav"
        wav.write_bytes(build_wav_header(4) + b"\x00\x00\x01\x00")

        result = runner.invoke(app, ["inspect", str(wav)])

        assert result.exit_code == 0
        assert "16000" in result.output
        assert "subchunk2_size" in result.output

    def test_inspect_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["inspect", str(tmp_path / "missing.wav")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_inspect_not_a_wav(self, tmp_path: Path) -> None:
        bogus = tmp_path / "bogus.wav"
        bogus.write_bytes(b"\x00" * 64)

        result = runner.invoke(app, ["inspect", str(bogus)])

        assert result.exit_code == 1
        assert "Not a RIFF/WAVE file" in result.output

    def test_inspect_size_mismatch(self, tmp_path: Path) -> None:
        wav = tmp_path / "truncated.wav"
        wav.write_bytes(build_wav_header(100) + b"\x00\x00")

        result = runner.invoke(app, ["inspect", str(wav)])

        assert result.exit_code == 1
        assert "does not match" in result.output


class TestExtractCommand:
    def test_extract_missing_source(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            [
                "extract",
                str(tmp_path / "nonexistent.mp4"),
                "-o",
                str(tmp_path / "out"),
                "-c",
                str(tmp_path),
            ],
        )
        assert result.exit_code == 1
        assert "Source not found" in result.output
        assert (tmp_path / "out").is_dir()

    def test_extract_invalid_config(self, tmp_path: Path) -> None:
        (tmp_path / "speechwav.yaml").write_text("decoder_input_slots: 0\n")

        result = runner.invoke(
            app, ["extract", "video.mp4", "-o", str(tmp_path), "-c", str(tmp_path)]
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
