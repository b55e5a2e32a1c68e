"""Test data factories for consistent test setup"""

import wave
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image

from core.models.render import AlignedStep, RenderConfig, Step, SynthesizedStep


def make_image(
    size: Tuple[int, int] = (800, 600),
    color: Tuple[int, ...] = (255, 0, 0),
    mode: str = "RGB",
) -> Image.Image:
    """Factory for solid-colour PIL images"""
    return Image.new(mode, size, color)


def make_step(
    narration_text: str = "Click the File menu",
    image: Optional[Image.Image] = None,
    **kwargs
) -> Step:
    """Factory for Step objects (with a small image unless told otherwise)"""
    if image is None and "image_path" not in kwargs:
        image = make_image((160, 90))
    return Step(narration_text=narration_text, image=image, **kwargs)


def make_step_list(count: int = 3, **kwargs) -> List[Step]:
    """Factory for list of steps"""
    return [make_step(narration_text=f"Step {i + 1} narration", **kwargs) for i in range(count)]


def make_config(**kwargs) -> RenderConfig:
    """Small canvas render config so frames stay cheap"""
    defaults = {"fps": 30, "width": 64, "height": 36, "compose_workers": 2}
    defaults.update(kwargs)
    return RenderConfig(**defaults)


def make_synthesized(index: int = 0, raw_duration: Optional[float] = 2.0, audio_path=None) -> SynthesizedStep:
    return SynthesizedStep(index=index, audio_path=audio_path, raw_duration=raw_duration)


def make_aligned(frame_counts: List[int], fps: int = 30) -> List[AlignedStep]:
    return [AlignedStep(index=i, frame_count=n, fps=fps) for i, n in enumerate(frame_counts)]


def write_silent_wav(path: Path, seconds: float, sample_rate: int = 24000) -> Path:
    """Write a mono 16-bit silent WAV of the given length"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x00\x00" * int(round(seconds * sample_rate)))
    return path


def make_tutorial_dict(count: int = 2, with_script: bool = False) -> dict:
    """Factory for a tutorial manifest as loaded from JSON"""
    data = {
        "title": "Export a report",
        "steps": [
            {
                "order_index": i,
                "instruction": f"Instruction {i}",
                "app_name": "Reports",
                "image": f"step_{i}.png",
            }
            for i in range(count)
        ],
    }
    if with_script:
        data["script"] = [f"Narration {i}" for i in range(count)]
    return data
