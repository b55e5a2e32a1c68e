"""Data models for Trace Video Producer"""

from .render import (
    EncoderState,
    Step,
    SynthesizedStep,
    AlignedStep,
    RenderConfig,
    MuxResult,
    RenderResult,
    parse_color,
)
from .tutorial import (
    Tutorial,
    TutorialStep,
)

__all__ = [
    # Render pipeline
    "EncoderState",
    "Step",
    "SynthesizedStep",
    "AlignedStep",
    "RenderConfig",
    "MuxResult",
    "RenderResult",
    "parse_color",
    # Tutorial manifest
    "Tutorial",
    "TutorialStep",
]
