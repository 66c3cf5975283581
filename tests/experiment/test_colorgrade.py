"""Tests for color grading and post-processing."""

import numpy as np
import pytest

from chromagraph.experiment.colorgrade import (
    add_glow,
    pitch_class_rgb,
    scale_rgb,
    screen_blend,
    tone_map_soft,
    vignette,
)


class TestPitchClassColor:
    def test_c_is_red(self):
        r, g, b = pitch_class_rgb(0)
        assert r == 255
        assert g == b
        assert g < 100

    def test_all_classes_distinct(self):
        colors = {pitch_class_rgb(pc) for pc in range(12)}
        assert len(colors) == 12

    def test_wraps(self):
        assert pitch_class_rgb(13) == pitch_class_rgb(1)

    def test_scale_rgb(self):
        assert scale_rgb((200, 100, 50), 0.5) == (100, 50, 25)
        assert scale_rgb((200, 100, 50), 2.0) == (200, 100, 50)
        assert scale_rgb((200, 100, 50), -1.0) == (0, 0, 0)


class TestAddGlow:
    def test_output_shape(self):
        frame = np.random.randint(0, 255, (60, 80, 3), dtype=np.uint8)
        result = add_glow(frame, intensity=0.3, radius=4)
        assert result.shape == frame.shape
        assert result.dtype == np.uint8

    def test_zero_intensity_passthrough(self):
        frame = np.random.randint(0, 255, (30, 40, 3), dtype=np.uint8)
        np.testing.assert_array_equal(add_glow(frame, intensity=0.0), frame)

    def test_glow_spreads_light(self):
        frame = np.zeros((41, 41, 3), dtype=np.uint8)
        frame[20, 20] = 255
        result = add_glow(frame, intensity=0.8, radius=3)
        assert result[20, 22].sum() > 0

    def test_threshold_keeps_dim_pixels_crisp(self):
        frame = np.zeros((41, 41, 3), dtype=np.uint8)
        frame[20, 20] = 60
        result = add_glow(frame, intensity=0.8, radius=3, threshold=100)
        np.testing.assert_array_equal(result, frame)

    def test_bright_pixels_bloom_past_threshold(self):
        frame = np.zeros((41, 41, 3), dtype=np.uint8)
        frame[20, 20] = (255, 40, 40)
        result = add_glow(frame, intensity=0.8, radius=3, threshold=100)
        assert result[20, 22, 0] > 0


class TestVignette:
    def test_corners_darker(self):
        frame = np.full((60, 80, 3), 200, dtype=np.uint8)
        result = vignette(frame, strength=0.8)
        assert result[0, 0, 0] < result[30, 40, 0]

    def test_zero_strength_passthrough(self):
        frame = np.full((10, 10, 3), 90, dtype=np.uint8)
        np.testing.assert_array_equal(vignette(frame, strength=0.0), frame)

    def test_off_center_bright_spot(self):
        frame = np.full((60, 80, 3), 200, dtype=np.uint8)
        result = vignette(frame, strength=0.8, center=(20.0, 30.0))
        assert result[30, 20, 0] == 200
        assert result[30, 20, 0] > result[30, 40, 0]


class TestToneMap:
    def test_shadows_unchanged(self):
        frame = np.full((4, 4, 3), 100, dtype=np.uint8)
        np.testing.assert_array_equal(tone_map_soft(frame), frame)

    def test_highlights_compressed(self):
        frame = np.full((4, 4, 3), 255, dtype=np.uint8)
        result = tone_map_soft(frame, shoulder=0.5)
        assert result.max() < 255
        assert result.min() > 127

    def test_hue_preserved(self):
        frame = np.zeros((2, 2, 3), dtype=np.uint8)
        frame[:, :] = (255, 51, 51)
        result = tone_map_soft(frame, shoulder=0.5)
        r, g, b = (int(c) for c in result[0, 0])
        assert r < 255
        assert g == b
        assert r / g == pytest.approx(5.0, rel=0.05)


@pytest.mark.parametrize("pc", range(12))
def test_pitch_class_rgb_range(pc):
    assert all(0 <= c <= 255 for c in pitch_class_rgb(pc, saturation=0.6, value=0.9))


class TestScreenBlend:
    def test_black_base_passthrough(self):
        layer = np.random.randint(0, 255, (8, 8, 3), dtype=np.uint8)
        base = np.zeros_like(layer)
        np.testing.assert_array_equal(screen_blend(base, layer), layer)

    def test_never_darkens(self):
        a = np.random.randint(0, 255, (8, 8, 3), dtype=np.uint8)
        b = np.random.randint(0, 255, (8, 8, 3), dtype=np.uint8)
        result = screen_blend(a, b).astype(int)
        assert (result >= np.maximum(a, b).astype(int) - 1).all()
