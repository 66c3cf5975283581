"""
Color grading and post-processing for graph frames.

Pitch-class hues for nodes, thresholded bloom, screen compositing of the
graph layer over the pitch wheel, vignette and hue-preserving tone mapping.
"""

import colorsys
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageFilter

DORMANT_RGB = (68, 68, 68)


def pitch_class_rgb(
    pc: int,
    saturation: float = 0.8,
    value: float = 1.0,
) -> Tuple[int, int, int]:
    """
    Hue wheel color for a pitch class.

    Args:
        pc: Pitch class 0-11 (C = 0); wraps outside that range.
        saturation: HSV saturation (0-1).
        value: HSV value (0-1).

    Returns:
        (r, g, b) ints in 0-255.
    """
    r, g, b = colorsys.hsv_to_rgb((pc % 12) / 12.0, saturation, value)
    return int(r * 255), int(g * 255), int(b * 255)


def scale_rgb(rgb: Tuple[int, int, int], factor: float) -> Tuple[int, int, int]:
    """Darken (factor < 1) an RGB triple, e.g. to fade a dying node into black."""
    factor = min(max(factor, 0.0), 1.0)
    return tuple(int(c * factor) for c in rgb)


def screen_blend(base: np.ndarray, layer: np.ndarray, opacity: float = 1.0) -> np.ndarray:
    """
    Screen ``layer`` over ``base``: 1 - (1-a)(1-b). Never darkens either input.

    Args:
        base: (H, W, 3) uint8 RGB array.
        layer: (H, W, 3) uint8 RGB array, same shape.
        opacity: Scale applied to ``layer`` before blending (0-1).
    """
    a = base.astype(np.float32) / 255.0
    b = layer.astype(np.float32) / 255.0 * opacity
    screen = 1.0 - (1.0 - a) * (1.0 - b)
    return np.clip(np.rint(screen * 255), 0, 255).astype(np.uint8)


def tone_map_soft(
    frame: np.ndarray,
    shoulder: float = 0.78,
) -> np.ndarray:
    """
    Soft-knee highlight compression that keeps each pixel's hue.

    The knee is applied to the brightest channel and the whole pixel is
    scaled by the same gain, so a saturated pitch-class node dims toward
    its own color instead of washing out to white where nodes overlap.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        shoulder: Brightness fraction (0-1) where compression begins.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    threshold = shoulder * 255.0
    headroom = 255.0 - threshold

    f = frame.astype(np.float32)
    peak = f.max(axis=2, keepdims=True)
    above = np.maximum(peak - threshold, 0.0)
    target = threshold + above * headroom / (above + headroom)
    gain = np.where(peak > threshold, target / np.maximum(peak, 1.0), 1.0)

    return (f * gain).astype(np.uint8)


def add_glow(
    frame: np.ndarray,
    intensity: float = 0.3,
    radius: int = 15,
    threshold: int = 0,
) -> np.ndarray:
    """
    Bloom around bright nodes.

    Only pixels whose brightest channel reaches ``threshold`` feed the blur,
    so dim edges and faded trails stay crisp while live nodes bloom.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: Glow opacity (0-1).
        radius: Blur radius in pixels.
        threshold: Minimum channel peak (0-255) that contributes to the glow.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    if intensity <= 0:
        return frame

    source = frame
    if threshold > 0:
        source = np.where(frame.max(axis=2, keepdims=True) >= threshold, frame, 0).astype(np.uint8)

    blurred = np.asarray(Image.fromarray(source).filter(ImageFilter.GaussianBlur(radius=radius)))
    return screen_blend(frame, blurred, opacity=intensity)


def vignette(
    frame: np.ndarray,
    strength: float = 0.4,
    center: Optional[Tuple[float, float]] = None,
) -> np.ndarray:
    """
    Radial darkening away from ``center`` (frame center by default).

    Args:
        frame: (H, W, 3) uint8.
        strength: 0 = none, 1 = black at the farthest corner.
        center: (x, y) pixel position of the bright spot, e.g. the layout center.
    """
    if strength <= 0:
        return frame

    h, w = frame.shape[:2]
    cx, cy = center if center is not None else (w / 2, h / 2)
    yg, xg = np.ogrid[0:h, 0:w]
    # Farthest corner maps to r = 1
    reach = max(np.hypot(x - cx, y - cy) for x in (0, w) for y in (0, h)) or 1.0
    r = np.sqrt((xg - cx) ** 2 + (yg - cy) ** 2) / reach

    vign = 1.0 - np.clip(r * strength, 0, 1) ** 2
    return (frame.astype(np.float32) * vign[:, :, np.newaxis]).astype(np.uint8)
