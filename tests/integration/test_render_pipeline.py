"""End-to-end render through a real ffmpeg binary"""

import shutil
from pathlib import Path

import pytest

from core.ffmpeg import probe_duration
from core.models.render import Step
from core.providers.audio.mock import MockAudioProvider
from core.renderer import TutorialVideoRenderer
from tests.mocks.fixtures import make_config, make_image


pytestmark = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg and ffprobe are required"
)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_renders_narrated_video(tmp_path):
    """Two narrated steps and one silent step produce a video of the aligned length"""
    renderer = TutorialVideoRenderer(
        provider=MockAudioProvider(),
        config=make_config(width=320, height=180, preset="ultrafast"),
        output_dir=str(tmp_path),
    )
    steps = [
        Step(narration_text="Open the File menu", image=make_image((800, 600), (200, 30, 30))),
        Step(narration_text="", image=make_image((300, 900), (30, 200, 30))),
        Step(narration_text="Click Export", image_path=str(tmp_path / "missing.png")),
    ]

    result = await renderer.render(steps)

    assert result.success, result.error_message
    assert result.audio_muxed is True
    # 1.6s + 1.0s, 4.0s fallback, 0.8s + 1.0s
    assert [s.frame_count for s in result.steps] == [78, 120, 54]
    assert result.duration == pytest.approx(8.4)

    probed = await probe_duration(result.output_path)
    assert probed == pytest.approx(result.duration, abs=0.1)
    assert [p.name for p in tmp_path.glob("*.mp4")] == [Path(result.output_path).name]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_silent_run_keeps_full_length(tmp_path):
    """Without any narration the video still runs for every step's fallback time"""
    renderer = TutorialVideoRenderer(
        provider=MockAudioProvider(),
        config=make_config(width=160, height=90, preset="ultrafast", fallback_duration=1.0),
        output_dir=str(tmp_path),
    )

    result = await renderer.render([Step(narration_text=""), Step(narration_text="")])

    assert result.success, result.error_message
    assert result.audio_muxed is False
    probed = await probe_duration(result.output_path)
    assert probed == pytest.approx(2.0, abs=0.1)
