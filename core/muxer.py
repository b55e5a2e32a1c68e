"""
Narration muxing.

Places each step's narration on a single audio track at the step's start time
in the video timeline and combines it with the already encoded video stream.

Start times are the running sum of the steps' aligned (on-screen) durations,
not of the narration lengths; the difference is the hold time between the end
of one narration and the next step. A step whose audio cannot be loaded
leaves its slot silent but still advances the timeline.
"""

import asyncio
import logging
import os
from fractions import Fraction
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from core.audio_utils import get_audio_duration
from core.errors import MuxExportError
from core.ffmpeg import find_ffmpeg
from core.models.render import MuxResult, RenderConfig

logger = logging.getLogger(__name__)

AudioSlot = Tuple[Optional[Union[str, Path]], float]


class AudioMuxer:
    """Combines per-step narration assets with a video-only stream."""

    def __init__(self, config: Optional[RenderConfig] = None, ffmpeg_path: Optional[str] = None):
        self.config = config or RenderConfig()
        self._ffmpeg_path = ffmpeg_path or find_ffmpeg()

    @staticmethod
    def slot_lengths(durations: Sequence[float], fps: int) -> List[Fraction]:
        """Snap each aligned duration back to its whole-frame length, frame_count / fps."""
        return [Fraction(round(duration * fps), fps) for duration in durations]

    @classmethod
    def compute_offsets(cls, durations: Sequence[float], fps: int) -> List[Fraction]:
        """Exact cumulative start time of each slot, summed in frames."""
        offsets = []
        current = Fraction(0)
        for length in cls.slot_lengths(durations, fps):
            offsets.append(current)
            current += length
        return offsets

    async def _is_loadable(self, path: Optional[Union[str, Path]]) -> bool:
        if path is None or not os.path.exists(path):
            return False
        return await get_audio_duration(path, self._ffmpeg_path) > 0

    def _generate_filter_complex(
        self,
        delays_in_samples: List[int],
        total_duration: float,
    ) -> str:
        """
        Build the filter graph: delay every input to its offset, mix, then pad
        or trim to the video length.
        """
        sample_rate = self.config.audio_sample_rate
        filters = []
        labels = []

        for i, delay in enumerate(delays_in_samples):
            input_idx = i + 1  # Input 0 is video, audio starts at 1
            label = f"a{i}"
            chain = [
                f"aresample={sample_rate}",
                "aformat=sample_fmts=fltp:channel_layouts=stereo",
            ]
            if delay > 0:
                chain.append(f"adelay=delays={delay}S:all=1")
            filters.append(f"[{input_idx}:a]{','.join(chain)}[{label}]")
            labels.append(f"[{label}]")

        if len(labels) > 1:
            filters.append(
                f"{''.join(labels)}amix=inputs={len(labels)}:duration=longest:normalize=0[mix]"
            )
            mixed = "[mix]"
        else:
            mixed = labels[0]

        filters.append(f"{mixed}apad,atrim=end={total_duration:.6f}[aout]")
        return ";".join(filters)

    async def _export(
        self,
        video_path: str,
        audio_paths: List[str],
        delays_in_samples: List[int],
        total_duration: float,
        output_path: str,
    ) -> None:
        inputs = ["-i", video_path]
        for path in audio_paths:
            inputs.extend(["-i", str(path)])

        cmd = [
            self._ffmpeg_path,
            "-y",
            *inputs,
            "-filter_complex", self._generate_filter_complex(delays_in_samples, total_duration),
            "-map", "0:v",  # Video from first input
            "-map", "[aout]",  # Narration track
            "-c:v", "copy",
            "-c:a", self.config.audio_codec,
            "-b:a", self.config.audio_bitrate,
            "-ar", str(self.config.audio_sample_rate),
            "-t", f"{total_duration:.6f}",
            "-movflags", "+faststart",
            output_path
        ]
        logger.debug("Muxing narration: %s", " ".join(cmd))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except (FileNotFoundError, PermissionError) as e:
            raise MuxExportError(f"Could not start ffmpeg: {e}") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            # Skip ffmpeg banner, real error is at the end of stderr
            raise MuxExportError(f"FFmpeg audio mux failed: {stderr.decode(errors='replace')[-500:]}")
        if not os.path.exists(output_path):
            raise MuxExportError("FFmpeg reported success but wrote no output")

    async def mux(
        self,
        video_path: Union[str, Path],
        tracks: Sequence[AudioSlot],
        output_path: Union[str, Path],
    ) -> MuxResult:
        """
        Lay narration assets onto the video timeline.

        Args:
            video_path: Finalized video-only stream
            tracks: (audio_path or None, aligned_duration) per step, in order
            output_path: Where the muxed file is written

        Returns:
            MuxResult. On an empty track list, when no asset can be loaded or
            when export fails, the result points at the video-only stream with
            audio_muxed=False.
        """
        video_path = str(video_path)
        output_path = str(output_path)

        if not tracks:
            logger.info("No narration supplied, delivering silent video")
            return MuxResult(path=Path(video_path), audio_muxed=False)

        durations = [duration for _, duration in tracks]
        offsets = self.compute_offsets(durations, self.config.fps)
        total = float(sum(self.slot_lengths(durations, self.config.fps), Fraction(0)))
        sample_rate = self.config.audio_sample_rate

        placed_paths: List[str] = []
        delays: List[int] = []
        skipped: List[int] = []
        for index, ((audio_path, _), offset) in enumerate(zip(tracks, offsets)):
            if not await self._is_loadable(audio_path):
                logger.warning("Narration for step %d could not be loaded, leaving it silent", index)
                skipped.append(index)
                continue
            placed_paths.append(str(audio_path))
            delays.append(round(offset * sample_rate))

        if not placed_paths:
            logger.warning("None of the narration assets could be loaded, delivering silent video")
            return MuxResult(path=Path(video_path), audio_muxed=False, skipped_indices=skipped)

        try:
            await self._export(video_path, placed_paths, delays, total, output_path)
        except MuxExportError as e:
            logger.warning("Narration mux failed, falling back to silent video: %s", e)
            if os.path.exists(output_path):
                os.remove(output_path)
            return MuxResult(
                path=Path(video_path),
                audio_muxed=False,
                skipped_indices=skipped,
                error_message=str(e),
            )

        return MuxResult(path=Path(output_path), audio_muxed=True, skipped_indices=skipped)
