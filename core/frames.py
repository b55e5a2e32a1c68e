"""
Frame composition: fit each step's screenshot onto the fixed output canvas.

Images are scaled to fit inside the canvas with their aspect ratio preserved
and centred; the uncovered area is filled with the background colour. Nothing
is stretched or cropped.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from core.models.render import RenderConfig, Step

logger = logging.getLogger(__name__)

Rect = Tuple[int, int, int, int]


def letterbox_rect(source_size: Tuple[int, int], canvas_size: Tuple[int, int]) -> Rect:
    """
    Compute where a source image is drawn inside the canvas.

    Args:
        source_size: (width, height) of the source image
        canvas_size: (width, height) of the output canvas

    Returns:
        (x, y, width, height) of the draw rectangle in canvas pixels
    """
    src_w, src_h = source_size
    canvas_w, canvas_h = canvas_size
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid source size {source_size}")

    aspect = src_w / src_h
    target_aspect = canvas_w / canvas_h

    if aspect > target_aspect:
        # Width-constrained: bars above and below
        draw_w = canvas_w
        draw_h = max(1, round(canvas_w / aspect))
        return (0, (canvas_h - draw_h) // 2, draw_w, draw_h)

    # Height-constrained: bars left and right
    draw_h = canvas_h
    draw_w = max(1, round(canvas_h * aspect))
    return ((canvas_w - draw_w) // 2, 0, draw_w, draw_h)


def load_step_image(step: Step) -> Optional[Image.Image]:
    """Return the step's image, loading it from disk if needed. None if unavailable."""
    if step.image is not None:
        return step.image
    if not step.image_path:
        return None
    try:
        with Image.open(step.image_path) as img:
            img.load()
            return img.copy()
    except (OSError, UnidentifiedImageError) as e:
        logger.warning("Could not load image %s: %s", step.image_path, e)
        return None


def compose_frame(
    image: Optional[Image.Image],
    canvas_size: Tuple[int, int],
    background: Tuple[int, int, int] = (0, 0, 0),
) -> Image.Image:
    """
    Rasterize an image into an RGB canvas frame.

    An absent image yields a canvas filled with the background colour only.
    """
    canvas = Image.new("RGB", canvas_size, background)
    if image is None:
        return canvas

    x, y, w, h = letterbox_rect(image.size, canvas_size)
    scaled = image.resize((w, h), Image.LANCZOS)

    if scaled.mode in ("RGBA", "LA") or (scaled.mode == "P" and "transparency" in scaled.info):
        scaled = scaled.convert("RGBA")
        canvas.paste(scaled, (x, y), scaled)
    else:
        canvas.paste(scaled.convert("RGB"), (x, y))

    return canvas


def compose_step(step: Step, config: RenderConfig) -> bytes:
    """Compose one step into raw rgb24 bytes ready for the encoder."""
    image = load_step_image(step)
    if image is None:
        logger.warning("Step has no image, using a blank %sx%s frame", config.width, config.height)
    frame = compose_frame(image, config.canvas_size, config.background_color)
    return frame.tobytes()


async def compose_all(steps: Sequence[Step], config: RenderConfig) -> List[bytes]:
    """
    Compose frames for all steps in parallel.

    Steps have no data dependency on each other, so each is rendered in a
    worker thread. The returned list is in step order.
    """
    loop = asyncio.get_running_loop()
    with ThreadPoolExecutor(max_workers=max(1, config.compose_workers)) as pool:
        futures = [
            loop.run_in_executor(pool, compose_step, step, config)
            for step in steps
        ]
        return list(await asyncio.gather(*futures))
