"""Core components - narration, timing, frames, encoding and muxing"""

from .renderer import TutorialVideoRenderer, pair_steps_with_script
from .narration import NarrationSynthesizer
from .encoder import VideoEncoder
from .muxer import AudioMuxer
from .timing import align, align_all, timeline_offsets, total_duration
from .frames import letterbox_rect, compose_frame

__all__ = [
    # Orchestration
    "TutorialVideoRenderer",
    "pair_steps_with_script",

    # Pipeline stages
    "NarrationSynthesizer",
    "VideoEncoder",
    "AudioMuxer",

    # Timing
    "align",
    "align_all",
    "timeline_offsets",
    "total_duration",

    # Frames
    "letterbox_rect",
    "compose_frame",
]
