"""
Narrated tutorial video renderer.

Turns an ordered list of (image, narration) steps into a single MP4:

1. Synthesize narration for every step, one utterance at a time
2. Align each step's on-screen time to whole frames
3. Compose one canvas frame per step (in parallel)
4. Encode the frames in step order, each repeated for its frame count
5. Lay the narration onto the video timeline

Only an encoder failure fails the run. Missing images, missing narration and
a failed narration mux all degrade to a still-playable video.
"""

import asyncio
import dataclasses
import logging
import os
import shutil
import tempfile
import time
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

from core.encoder import VideoEncoder
from core.errors import EncoderInitError, EncoderWriteError
from core.frames import compose_all
from core.models.render import RenderConfig, RenderResult, Step
from core.models.tutorial import Tutorial
from core.muxer import AudioMuxer
from core.narration import NarrationSynthesizer
from core.providers.base import AudioProvider
from core.timing import align_all, total_duration

logger = logging.getLogger(__name__)


def pair_steps_with_script(steps: Sequence[Step], script: Optional[Sequence[str]]) -> List[Step]:
    """
    Replace step narration with script lines.

    Only the first min(len(steps), len(script)) steps are kept. Without a
    script the steps are returned unchanged.
    """
    if script is None:
        return list(steps)
    count = min(len(steps), len(script))
    return [
        dataclasses.replace(steps[i], narration_text=script[i])
        for i in range(count)
    ]


class TutorialVideoRenderer:
    """
    Runs the whole step -> video pipeline.

    The speech engine is handed in; each render() call drives it through its
    own single-flight NarrationSynthesizer, which releases it when the run ends.
    """

    def __init__(
        self,
        provider: AudioProvider,
        config: Optional[RenderConfig] = None,
        output_dir: Optional[str] = None,
        voice_id: Optional[str] = None,
        ffmpeg_path: Optional[str] = None,
    ):
        """
        Initialize the renderer.

        Args:
            provider: Speech engine used for narration
            config: Render configuration (uses defaults if not provided)
            output_dir: Directory finished videos are moved to (default: temp dir)
            voice_id: Voice passed to the speech engine
            ffmpeg_path: Explicit ffmpeg binary (discovered when omitted)
        """
        self.provider = provider
        self.config = config or RenderConfig()
        self.output_dir = Path(output_dir or tempfile.gettempdir())
        self.voice_id = voice_id
        self.ffmpeg_path = ffmpeg_path

    async def render_tutorial(self, tutorial: Tutorial) -> RenderResult:
        """Render a loaded tutorial manifest."""
        return await self.render(tutorial.to_render_steps())

    async def render(
        self,
        steps: Sequence[Step],
        script: Optional[Sequence[str]] = None,
    ) -> RenderResult:
        """
        Render steps into a narrated video.

        Args:
            steps: Ordered steps (image + narration text)
            script: Optional narration lines overriding each step's text

        Returns:
            RenderResult with the final video path, or success=False
        """
        start_time = time.time()
        steps = pair_steps_with_script(steps, script)

        if not steps:
            logger.error("No steps to render")
            return RenderResult(success=False, error_message="No steps to render")

        work_dir = Path(tempfile.mkdtemp(prefix="trace_render_"))
        try:
            return await self._render_in(work_dir, steps, start_time)
        except asyncio.CancelledError:
            logger.warning("Render cancelled, discarding partial output")
            raise
        except (EncoderInitError, EncoderWriteError) as e:
            return RenderResult(
                success=False,
                error_message=str(e),
                render_time=time.time() - start_time
            )
        except Exception as e:
            logger.exception("Render failed")
            return RenderResult(
                success=False,
                error_message=str(e),
                render_time=time.time() - start_time
            )
        finally:
            # Narration assets and intermediates are removed on every path
            shutil.rmtree(work_dir, ignore_errors=True)

    async def _render_in(self, work_dir: Path, steps: List[Step], start_time: float) -> RenderResult:
        # Step 1: Narration, strictly one utterance at a time
        logger.info("Synthesizing narration for %d steps", len(steps))
        async with NarrationSynthesizer(
            self.provider, work_dir / "audio", voice_id=self.voice_id
        ) as synthesizer:
            synthesized = await synthesizer.synthesize_all([s.narration_text for s in steps])

        # Step 2: Frame-quantized timing
        aligned = align_all(synthesized, self.config)
        for synth, step in zip(synthesized, aligned):
            logger.info(
                "Step %d: audio %s -> on screen %.3fs (%d frames)%s",
                step.index,
                f"{synth.raw_duration:.2f}s" if synth.is_valid else "n/a",
                step.aligned_duration,
                step.frame_count,
                " [fallback]" if step.used_fallback else "",
            )

        # Step 3: Canvas frames
        frames = await compose_all(steps, self.config)

        # Step 4: Video stream
        logger.info("Encoding video")
        encoder = VideoEncoder(str(work_dir / "video.mp4"), self.config, self.ffmpeg_path)
        video_path = await encoder.encode(
            (frame, step.frame_count) for frame, step in zip(frames, aligned)
        )

        # Step 5: Narration track
        if any(s.audio_path is not None for s in synthesized):
            tracks = [(s.audio_path, a.aligned_duration) for s, a in zip(synthesized, aligned)]
        else:
            tracks = []
        muxer = AudioMuxer(self.config, self.ffmpeg_path)
        mux_result = await muxer.mux(video_path, tracks, work_dir / "muxed.mp4")

        # Promote the artifact out of the work dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        final_output = self.output_dir / f"trace_tutorial_{uuid.uuid4().hex}.mp4"
        shutil.move(str(mux_result.path), final_output)

        logger.info("Video ready: %s", final_output)
        return RenderResult(
            success=True,
            output_path=str(final_output),
            duration=total_duration(aligned),
            file_size=os.path.getsize(final_output),
            render_time=time.time() - start_time,
            audio_muxed=mux_result.audio_muxed,
            error_message=mux_result.error_message,
            steps=aligned,
        )
