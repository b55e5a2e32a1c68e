"""
Tutorial manifest models

A recorded tutorial arrives as a JSON manifest listing its steps. Each step
points at a screenshot and carries the instruction text captured while
recording; an optional "script" list replaces the instructions with a
narration written for voiceover.

Example manifest:

    {
      "title": "Export a report",
      "steps": [
        {"order_index": 0, "instruction": "Click File", "image": "step_0.png"},
        {"order_index": 1, "instruction": "Choose Export", "image": "step_1.png"}
      ],
      "script": ["First, open the File menu.", "Then choose Export."]
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .render import Step


@dataclass
class TutorialStep:
    """A single recorded step"""
    order_index: int
    instruction: str
    detail: str = ""
    app_name: str = ""
    element_name: str = ""
    image_path: Optional[str] = None


@dataclass
class Tutorial:
    """A recorded tutorial with its steps and optional narration script"""
    title: str = "New Tutorial"
    steps: List[TutorialStep] = field(default_factory=list)
    script: Optional[List[str]] = None

    @property
    def sorted_steps(self) -> List[TutorialStep]:
        return sorted(self.steps, key=lambda s: s.order_index)

    def narration(self) -> List[str]:
        """Narration lines in step order (script when present, else instructions)."""
        if self.script is not None:
            return list(self.script)
        return [s.instruction for s in self.sorted_steps]

    def to_render_steps(self) -> List[Step]:
        """
        Pair sorted steps with narration lines.

        Only the first min(len(steps), len(narration)) steps are rendered.
        """
        steps = self.sorted_steps
        lines = self.narration()
        count = min(len(steps), len(lines))
        return [
            Step(narration_text=lines[i], image_path=steps[i].image_path)
            for i in range(count)
        ]

    @classmethod
    def from_dict(cls, data: dict, base_dir: Optional[Path] = None) -> "Tutorial":
        steps = []
        for i, raw in enumerate(data.get("steps", [])):
            image = raw.get("image") or raw.get("image_path")
            if image and base_dir is not None and not Path(image).is_absolute():
                image = str(base_dir / image)
            steps.append(TutorialStep(
                order_index=raw.get("order_index", i),
                instruction=raw.get("instruction", ""),
                detail=raw.get("detail", ""),
                app_name=raw.get("app_name", ""),
                element_name=raw.get("element_name", ""),
                image_path=image,
            ))

        return cls(
            title=data.get("title", "New Tutorial"),
            steps=steps,
            script=data.get("script"),
        )

    @classmethod
    def load(cls, path: Path) -> "Tutorial":
        """Load a tutorial manifest; image paths resolve relative to the manifest."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data, base_dir=path.parent)
