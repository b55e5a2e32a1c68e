"""
FFmpeg-based video encoder for step frames.

Raw rgb24 frames are piped into ffmpeg's stdin at a fixed frame rate. Frame n
is presented at exactly n / fps: timestamps come from the submission count,
never from the wall clock. Before every submission the encoder waits for its
input pipe to accept more data (asyncio's drain), so a slow encoder throttles
the producer instead of buffering the whole video in memory.

State machine: IDLE -> WRITING -> FINISHED | FAILED
"""

import asyncio
import contextlib
import logging
import os
from fractions import Fraction
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from core.errors import EncoderInitError, EncoderStateError, EncoderWriteError
from core.ffmpeg import find_ffmpeg
from core.models.render import EncoderState, RenderConfig

logger = logging.getLogger(__name__)


class VideoEncoder:
    """
    Encodes a sequence of (frame, repeat_count) pairs into an H.264 MP4.

    Usage:
        encoder = VideoEncoder(output_path, config)
        await encoder.start()
        await encoder.write_frame(frame_bytes, repeat=99)
        await encoder.finish()
    """

    def __init__(
        self,
        output_path: str,
        config: Optional[RenderConfig] = None,
        ffmpeg_path: Optional[str] = None,
    ):
        self.output_path = Path(output_path)
        self.config = config or RenderConfig()
        self._ffmpeg_path = ffmpeg_path or find_ffmpeg()
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._stderr_tail = b""
        self.state = EncoderState.IDLE
        self.frames_written = 0
        self.error_message: Optional[str] = None

    @property
    def frame_size(self) -> int:
        """Bytes in one rgb24 frame."""
        return self.config.width * self.config.height * 3

    @property
    def presentation_time(self) -> Fraction:
        """Presentation time of the next frame to be submitted."""
        return Fraction(self.frames_written, self.config.fps)

    def _build_command(self) -> List[str]:
        return [
            self._ffmpeg_path,
            "-y",
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "-s", f"{self.config.width}x{self.config.height}",
            "-framerate", str(self.config.fps),
            "-i", "-",
            "-an",
            "-c:v", self.config.video_codec,
            "-preset", self.config.preset,
            "-crf", str(self.config.crf),
            "-pix_fmt", self.config.pixel_format,
            "-r", str(self.config.fps),
            "-movflags", "+faststart",
            str(self.output_path),
        ]

    async def _collect_stderr(self) -> None:
        # ffmpeg logs continuously; keep the pipe empty and remember the tail
        assert self._process is not None and self._process.stderr is not None
        while True:
            chunk = await self._process.stderr.read(4096)
            if not chunk:
                break
            self._stderr_tail = (self._stderr_tail + chunk)[-2000:]

    def _fail(self, message: str) -> None:
        self.state = EncoderState.FAILED
        self.error_message = message
        logger.error("Video encoder failed: %s", message)

    async def start(self) -> None:
        """Spawn the encoder process. IDLE -> WRITING."""
        if self.state is not EncoderState.IDLE:
            raise EncoderStateError(f"Cannot start encoder in state {self.state.value}")

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = self._build_command()
        logger.debug("Starting encoder: %s", " ".join(cmd))

        try:
            self._process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            self._fail(f"Could not start ffmpeg ({self._ffmpeg_path}): {e}")
            raise EncoderInitError(self.error_message) from e

        self._stderr_task = asyncio.create_task(self._collect_stderr())
        self.state = EncoderState.WRITING

    async def write_frame(self, frame: bytes, repeat: int = 1) -> None:
        """
        Submit the same frame `repeat` times.

        Each submission waits for the encoder input to be ready first and
        advances the presentation time by exactly 1/fps.
        """
        if self.state is not EncoderState.WRITING:
            raise EncoderStateError(f"Cannot write frames in state {self.state.value}")
        if len(frame) != self.frame_size:
            self._fail(f"Frame is {len(frame)} bytes, expected {self.frame_size}")
            raise EncoderWriteError(self.error_message)
        if repeat < 0:
            raise ValueError(f"repeat must be non-negative, got {repeat}")

        assert self._process is not None and self._process.stdin is not None
        stdin = self._process.stdin

        for _ in range(repeat):
            if self._process.returncode is not None:
                self._fail(f"ffmpeg exited early with code {self._process.returncode}: {self._stderr_text()}")
                raise EncoderWriteError(self.error_message)
            try:
                await stdin.drain()
                stdin.write(frame)
            except (BrokenPipeError, ConnectionResetError) as e:
                self._fail(f"ffmpeg closed its input: {self._stderr_text() or e}")
                raise EncoderWriteError(self.error_message) from e
            self.frames_written += 1

    async def finish(self) -> Path:
        """
        Flush and close the stream exactly once. WRITING -> FINISHED.

        Returns:
            Path to the encoded video
        """
        if self.state is not EncoderState.WRITING:
            raise EncoderStateError(f"Cannot finish encoder in state {self.state.value}")

        assert self._process is not None and self._process.stdin is not None
        try:
            await self._process.stdin.drain()
            self._process.stdin.close()
        except (BrokenPipeError, ConnectionResetError):
            pass  # surfaced through the exit code below

        returncode = await self._process.wait()
        if self._stderr_task is not None:
            await self._stderr_task

        if returncode != 0:
            self._fail(f"ffmpeg exited with code {returncode}: {self._stderr_text()}")
            raise EncoderWriteError(self.error_message)
        if self.frames_written == 0 or not self.output_path.exists():
            self._fail("No video was written")
            raise EncoderWriteError(self.error_message)

        self.state = EncoderState.FINISHED
        logger.info(
            "Encoded %d frames (%.3fs) to %s",
            self.frames_written, float(self.presentation_time), self.output_path
        )
        return self.output_path

    async def abort(self) -> None:
        """Kill the encoder and remove any partial output."""
        if self._process is not None and self._process.returncode is None:
            self._process.kill()
            await self._process.wait()
        if self._stderr_task is not None and not self._stderr_task.done():
            self._stderr_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._stderr_task
        if self.state is not EncoderState.FINISHED:
            self.state = EncoderState.FAILED
        if self.output_path.exists():
            os.remove(self.output_path)

    async def encode(self, pairs: Iterable[Tuple[bytes, int]]) -> Path:
        """
        Encode (frame, repeat_count) pairs in order.

        Any failure aborts the encoder, deletes the partial file and re-raises.
        """
        try:
            await self.start()
            for frame, count in pairs:
                await self.write_frame(frame, count)
            return await self.finish()
        except BaseException:
            await self.abort()
            raise

    def _stderr_text(self) -> str:
        return self._stderr_tail.decode(errors="replace").strip()[-500:]
