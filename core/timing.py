"""
Frame-accurate step timing.

Every step is shown for a whole number of frames. The count is the ceiling of
(narration + buffer) * fps so that a step never ends before its narration
does; steps without a usable narration get the fallback duration instead.

Arithmetic is done on the decimal form of the inputs so that e.g. 2.3 s of
audio plus a 1.0 s buffer at 30 fps is exactly 99 frames, not 100 because of
binary floating point noise.
"""

import math
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from core.models.render import AlignedStep, RenderConfig, SynthesizedStep


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def align(
    raw_duration: Optional[float],
    fps: int,
    buffer: float,
    fallback_duration: float,
) -> Tuple[int, float]:
    """
    Quantize a narration length to frames.

    Args:
        raw_duration: Probed narration length in seconds (None/<=0 = invalid)
        fps: Output frame rate
        buffer: Seconds of hold time added after the narration
        fallback_duration: Seconds used when raw_duration is invalid

    Returns:
        (frame_count, aligned_duration) with aligned_duration == frame_count / fps
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    if raw_duration is not None and math.isfinite(raw_duration) and raw_duration > 0:
        target = _dec(raw_duration) + _dec(buffer)
    else:
        target = _dec(fallback_duration)

    frame_count = max(1, math.ceil(target * _dec(fps)))
    return frame_count, frame_count / fps


def align_step(step: SynthesizedStep, config: RenderConfig) -> AlignedStep:
    """Align one synthesized step using the render configuration."""
    frame_count, _ = align(
        step.raw_duration,
        config.fps,
        config.buffer_seconds,
        config.fallback_duration,
    )
    return AlignedStep(
        index=step.index,
        frame_count=frame_count,
        fps=config.fps,
        used_fallback=not step.is_valid,
    )


def align_all(steps: Iterable[SynthesizedStep], config: RenderConfig) -> List[AlignedStep]:
    return [align_step(s, config) for s in steps]


def timeline_offsets(aligned: List[AlignedStep]) -> List[float]:
    """
    Start time of each step in the output timeline.

    offset(k) = sum(frame_count[0..k-1]) / fps, summed as integers so the
    offsets never drift from the video frames regardless of step count.
    """
    offsets = []
    frames_so_far = 0
    for step in aligned:
        offsets.append(frames_so_far / step.fps)
        frames_so_far += step.frame_count
    return offsets


def total_frames(aligned: List[AlignedStep]) -> int:
    return sum(step.frame_count for step in aligned)


def total_duration(aligned: List[AlignedStep]) -> float:
    """Length of the whole video in seconds."""
    if not aligned:
        return 0.0
    return total_frames(aligned) / aligned[0].fps
