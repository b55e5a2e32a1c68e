"""CLI command tests using Click's CliRunner

Tests argument parsing, option validation, help text, JSON output, and
basic execution paths for all CLI commands (no real ffmpeg or speech calls).
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from cli import main
from core.errors import FFmpegNotFoundError
from core.models.render import AlignedStep, RenderResult
from tests.mocks.fixtures import make_tutorial_dict


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def runner():
    """Click CliRunner"""
    return CliRunner()


@pytest.fixture
def isolated_runner():
    """Click CliRunner with isolated filesystem for file operations"""
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("tutorial.json").write_text(json.dumps(make_tutorial_dict(2)))
        yield runner


@pytest.fixture
def mock_renderer():
    """Patch the renderer class used by the render command"""
    with patch("cli.render.TutorialVideoRenderer") as renderer_cls, \
         patch("cli.render.require_ffmpeg", new_callable=AsyncMock, return_value="/usr/bin/ffmpeg"):
        yield renderer_cls


def successful_result(path: str) -> RenderResult:
    Path(path).write_bytes(b"video")
    return RenderResult(
        success=True,
        output_path=path,
        duration=6.6,
        file_size=5,
        render_time=1.2,
        audio_muxed=True,
        steps=[AlignedStep(index=0, frame_count=99, fps=30), AlignedStep(index=1, frame_count=99, fps=30)],
    )


# ============================================================
# Main CLI Group
# ============================================================

class TestMainGroup:
    """Tests for the top-level CLI group."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "render" in result.output
        assert "check" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_unknown_command(self, runner):
        result = runner.invoke(main, ["nonexistent"])
        assert result.exit_code != 0


# ============================================================
# Check Command
# ============================================================

class TestCheckCommand:
    """Tests for 'trace-video check'."""

    def test_json_output(self, runner):
        status = {"installed": True, "path": "/usr/bin/ffmpeg", "ffprobe": None, "version": "ffmpeg version 6.1"}
        with patch("cli.check.check_ffmpeg_installed", new_callable=AsyncMock, return_value=status):
            result = runner.invoke(main, ["check", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ffmpeg"]["installed"] is True
        assert "fps" in data["settings"]

    def test_missing_ffmpeg_table(self, runner):
        status = {"installed": False, "path": None, "ffprobe": None, "version": None, "error": "FFmpeg not found."}
        with patch("cli.check.check_ffmpeg_installed", new_callable=AsyncMock, return_value=status):
            result = runner.invoke(main, ["check"])

        assert result.exit_code == 0
        assert "Missing" in result.output


# ============================================================
# Render Command
# ============================================================

class TestRenderCommand:
    """Tests for 'trace-video render'."""

    def test_help(self, runner):
        result = runner.invoke(main, ["render", "--help"])
        assert result.exit_code == 0
        assert "--buffer" in result.output
        assert "--fallback" in result.output

    def test_missing_manifest(self, runner):
        result = runner.invoke(main, ["render", "nope.json"])
        assert result.exit_code != 0

    def test_successful_render(self, isolated_runner, mock_renderer):
        mock_renderer.return_value.render = AsyncMock(return_value=successful_result("rendered.mp4"))

        result = isolated_runner.invoke(main, ["render", "tutorial.json", "--provider", "mock", "-o", "out/final.mp4"])

        assert result.exit_code == 0, result.output
        assert "Render complete!" in result.output
        assert Path("out/final.mp4").exists()
        steps = mock_renderer.return_value.render.call_args.args[0]
        assert [s.narration_text for s in steps] == ["Instruction 0", "Instruction 1"]

    def test_flags_override_settings(self, isolated_runner, mock_renderer):
        mock_renderer.return_value.render = AsyncMock(return_value=successful_result("rendered.mp4"))

        result = isolated_runner.invoke(
            main, ["render", "tutorial.json", "--fps", "24", "--buffer", "0.5", "--fallback", "2"]
        )

        assert result.exit_code == 0, result.output
        config = mock_renderer.call_args.kwargs["config"]
        assert config.fps == 24
        assert config.buffer_seconds == 0.5
        assert config.fallback_duration == 2.0

    def test_invalid_fps(self, isolated_runner, mock_renderer):
        result = isolated_runner.invoke(main, ["render", "tutorial.json", "--fps", "0"])

        assert result.exit_code == 2
        mock_renderer.assert_not_called()

    def test_render_failure_exits_non_zero(self, isolated_runner, mock_renderer):
        mock_renderer.return_value.render = AsyncMock(
            return_value=RenderResult(success=False, error_message="ffmpeg exited with code 1")
        )

        result = isolated_runner.invoke(main, ["render", "tutorial.json"])

        assert result.exit_code == 1
        assert "Render failed" in result.output

    def test_silent_tutorial_is_not_reported_as_a_failure(self, isolated_runner, mock_renderer):
        result_obj = successful_result("rendered.mp4")
        result_obj.audio_muxed = False
        mock_renderer.return_value.render = AsyncMock(return_value=result_obj)

        result = isolated_runner.invoke(main, ["render", "tutorial.json"])

        assert result.exit_code == 0, result.output
        assert "No narration audio" in result.output
        assert "could not be added" not in result.output

    def test_mux_failure_is_reported(self, isolated_runner, mock_renderer):
        result_obj = successful_result("rendered.mp4")
        result_obj.audio_muxed = False
        result_obj.error_message = "Invalid filter graph"
        mock_renderer.return_value.render = AsyncMock(return_value=result_obj)

        result = isolated_runner.invoke(main, ["render", "tutorial.json"])

        assert result.exit_code == 0, result.output
        assert "could not be added" in result.output
        assert "Invalid filter graph" in result.output

    def test_missing_ffmpeg(self, isolated_runner):
        with patch("cli.render.require_ffmpeg", new_callable=AsyncMock,
                   side_effect=FFmpegNotFoundError("FFmpeg not found.")):
            result = isolated_runner.invoke(main, ["render", "tutorial.json"])

        assert result.exit_code == 1
        assert "FFmpeg not found" in result.output
