"""
Render models for narrated tutorial video assembly

These models represent the inputs, intermediate per-step results and the
final result of turning (image, narration) steps into a single video.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from PIL import Image

    from core.config import Settings


class EncoderState(Enum):
    """Lifecycle of a VideoEncoder"""
    IDLE = "idle"
    WRITING = "writing"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass(frozen=True)
class Step:
    """
    One tutorial step handed to the pipeline.

    Attributes:
        narration_text: Text to speak while the step is on screen
        image: Already-decoded raster image (None = absent)
        image_path: Image file to load when no decoded image is given
    """
    narration_text: str
    image: Optional["Image.Image"] = None
    image_path: Optional[str] = None


@dataclass
class SynthesizedStep:
    """
    Narration produced for one step.

    Attributes:
        index: Position of the step in the run
        audio_path: Audio asset on disk (None when the engine gave nothing usable)
        raw_duration: Probed length of the asset in seconds (None when invalid)
    """
    index: int
    audio_path: Optional[Path] = None
    raw_duration: Optional[float] = None
    error_message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.raw_duration is not None and self.raw_duration > 0


@dataclass
class AlignedStep:
    """
    Frame-quantized on-screen time for one step.

    aligned_duration * fps is always the integer frame_count.
    """
    index: int
    frame_count: int
    fps: int
    used_fallback: bool = False

    @property
    def aligned_duration(self) -> float:
        return self.frame_count / self.fps


@dataclass
class RenderConfig:
    """
    Configuration for rendering.

    Attributes:
        fps: Output frame rate
        width: Output video width in pixels
        height: Output video height in pixels
        buffer_seconds: Silence kept on screen after each narration
        fallback_duration: On-screen time for steps without usable narration
        background_color: Letterbox fill colour (RGB)
        video_codec: Video codec (h264 via libx264)
        audio_codec: Audio codec (aac)
        audio_bitrate: Audio bitrate (e.g., "192k")
        audio_sample_rate: Sample rate of the muxed narration track
        pixel_format: Output pixel format (yuv420p for compatibility)
    """
    fps: int = 30
    width: int = 1920
    height: int = 1080
    buffer_seconds: float = 1.0
    fallback_duration: float = 4.0
    background_color: Tuple[int, int, int] = (0, 0, 0)
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    audio_bitrate: str = "192k"
    audio_sample_rate: int = 48000
    pixel_format: str = "yuv420p"

    # Quality preset (ultrafast, fast, medium, slow, veryslow)
    preset: str = "medium"

    # CRF for quality-based encoding (0-51, lower = better, 23 is default)
    crf: int = 23

    # Thread pool size for frame composition
    compose_workers: int = 4

    def __post_init__(self):
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid canvas size {self.width}x{self.height}")
        if self.fallback_duration <= 0:
            raise ValueError("fallback_duration must be positive")
        if self.buffer_seconds < 0:
            raise ValueError("buffer_seconds cannot be negative")

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RenderConfig":
        """Build a RenderConfig from environment-backed settings."""
        return cls(
            fps=settings.fps,
            width=settings.width,
            height=settings.height,
            buffer_seconds=settings.buffer_seconds,
            fallback_duration=settings.fallback_duration,
            background_color=parse_color(settings.background_color),
            video_codec=settings.video_codec,
            audio_codec=settings.audio_codec,
            audio_bitrate=settings.audio_bitrate,
            audio_sample_rate=settings.audio_sample_rate,
            pixel_format=settings.pixel_format,
            preset=settings.preset,
            crf=settings.crf,
            compose_workers=settings.compose_workers,
        )


def parse_color(value: str) -> Tuple[int, int, int]:
    """Parse '#rrggbb' (or 'rrggbb') into an RGB tuple."""
    hex_value = value.strip().lstrip("#")
    if len(hex_value) != 6:
        raise ValueError(f"Expected a #rrggbb colour, got {value!r}")
    return tuple(int(hex_value[i:i + 2], 16) for i in (0, 2, 4))


@dataclass
class MuxResult:
    """Outcome of combining narration with the encoded video."""
    path: Path
    audio_muxed: bool
    skipped_indices: List[int] = field(default_factory=list)
    error_message: Optional[str] = None


@dataclass
class RenderResult:
    """
    Result from a render operation.

    Attributes:
        success: Whether a playable video was produced
        output_path: Path to the rendered video file
        duration: Duration of the video timeline in seconds
        file_size: Size of the output file in bytes
        render_time: Time taken to render in seconds
        audio_muxed: False when the video was delivered without narration
        error_message: Error message if render failed or degraded
        steps: Aligned per-step timing used for the render
    """
    success: bool
    output_path: Optional[str] = None
    duration: Optional[float] = None
    file_size: Optional[int] = None
    render_time: Optional[float] = None
    audio_muxed: bool = False
    error_message: Optional[str] = None
    steps: List[AlignedStep] = field(default_factory=list)
