"""Unit tests for frame composition and letterbox geometry"""

import pytest

from core.frames import compose_all, compose_frame, compose_step, letterbox_rect, load_step_image
from core.models.render import Step
from tests.mocks.fixtures import make_config, make_image


class TestLetterboxRect:
    """Tests for the pure letterbox geometry"""

    def test_same_aspect_fills_canvas(self):
        assert letterbox_rect((1280, 720), (1920, 1080)) == (0, 0, 1920, 1080)

    def test_wide_source_gets_bars_top_and_bottom(self):
        x, y, w, h = letterbox_rect((2000, 500), (1920, 1080))

        assert (x, w) == (0, 1920)
        assert h == 480
        assert y == (1080 - 480) // 2

    def test_tall_source_gets_bars_left_and_right(self):
        x, y, w, h = letterbox_rect((600, 800), (1920, 1080))

        assert (y, h) == (0, 1080)
        assert w == 810
        assert x == (1920 - 810) // 2

    def test_small_source_is_scaled_up(self):
        assert letterbox_rect((16, 9), (1920, 1080)) == (0, 0, 1920, 1080)

    @pytest.mark.parametrize("source", [(1, 1000), (1000, 1), (333, 777), (4000, 3000), (1, 1)])
    @pytest.mark.parametrize("canvas", [(1920, 1080), (1080, 1920), (640, 480)])
    def test_rect_stays_inside_canvas(self, source, canvas):
        x, y, w, h = letterbox_rect(source, canvas)

        assert x >= 0 and y >= 0
        assert w >= 1 and h >= 1
        assert x + w <= canvas[0]
        assert y + h <= canvas[1]
        # One dimension always touches the canvas edges
        assert w == canvas[0] or h == canvas[1]

    def test_rect_is_centred(self):
        x, y, w, h = letterbox_rect((600, 800), (1920, 1080))
        left = x
        right = 1920 - (x + w)
        assert abs(left - right) <= 1

    def test_rejects_empty_source(self):
        with pytest.raises(ValueError):
            letterbox_rect((0, 100), (1920, 1080))


class TestComposeFrame:
    """Tests for compose_frame()"""

    def test_missing_image_is_background_only(self):
        frame = compose_frame(None, (64, 36), (10, 20, 30))

        assert frame.mode == "RGB"
        assert frame.size == (64, 36)
        assert frame.getcolors() == [(64 * 36, (10, 20, 30))]

    def test_image_is_centred_with_bars(self):
        image = make_image((100, 100), (255, 0, 0))

        frame = compose_frame(image, (64, 36), (0, 0, 0))

        # 36x36 square centred horizontally: x in [14, 50)
        assert frame.getpixel((32, 18)) == (255, 0, 0)
        assert frame.getpixel((2, 18)) == (0, 0, 0)
        assert frame.getpixel((61, 18)) == (0, 0, 0)

    def test_transparent_pixels_show_background(self):
        image = make_image((64, 36), (255, 0, 0, 0), mode="RGBA")

        frame = compose_frame(image, (64, 36), (0, 0, 255))

        assert frame.getpixel((32, 18)) == (0, 0, 255)

    def test_non_rgb_sources_are_converted(self):
        image = make_image((64, 36), 128, mode="L")

        frame = compose_frame(image, (64, 36))

        assert frame.mode == "RGB"
        assert frame.getpixel((10, 10)) == (128, 128, 128)


class TestLoadStepImage:
    """Tests for load_step_image()"""

    def test_prefers_decoded_image(self, sample_image):
        step = Step(narration_text="x", image=sample_image, image_path="/does/not/exist.png")
        assert load_step_image(step) is sample_image

    def test_loads_from_disk(self, tmp_path):
        path = tmp_path / "shot.png"
        make_image((20, 10), (0, 255, 0)).save(path)

        image = load_step_image(Step(narration_text="x", image_path=str(path)))

        assert image.size == (20, 10)

    def test_missing_file_returns_none(self, tmp_path):
        step = Step(narration_text="x", image_path=str(tmp_path / "missing.png"))
        assert load_step_image(step) is None

    def test_corrupt_file_returns_none(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        assert load_step_image(Step(narration_text="x", image_path=str(path))) is None

    def test_no_image_at_all(self):
        assert load_step_image(Step(narration_text="x")) is None


class TestComposeAll:
    """Tests for parallel composition"""

    def test_compose_step_returns_rgb24_bytes(self):
        config = make_config()
        frame = compose_step(Step(narration_text="x"), config)
        assert len(frame) == config.width * config.height * 3

    @pytest.mark.asyncio
    async def test_frames_in_step_order(self):
        config = make_config()
        colours = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 255)]
        steps = [Step(narration_text=str(i), image=make_image((64, 36), c)) for i, c in enumerate(colours)]

        frames = await compose_all(steps, config)

        assert len(frames) == 4
        for frame, colour in zip(frames, colours):
            assert frame[:3] == bytes(colour)

    @pytest.mark.asyncio
    async def test_missing_image_does_not_stop_others(self, tmp_path):
        config = make_config(background_color=(1, 2, 3))
        steps = [
            Step(narration_text="a", image=make_image((64, 36), (255, 0, 0))),
            Step(narration_text="b", image_path=str(tmp_path / "gone.png")),
        ]

        frames = await compose_all(steps, config)

        assert frames[0][:3] == bytes((255, 0, 0))
        assert frames[1] == bytes((1, 2, 3)) * (config.width * config.height)
