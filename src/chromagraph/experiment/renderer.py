"""
Audio-reactive Graph Rewriting Automaton renderer.

Reads manifest frame data and turns musical events into engine calls:
- Beats kick the layout (impulse) and flip nodes in the dominant pitch sector
- Onsets advance the automaton one discrete step
- Every few beats the rule moves on through a cycle of presets

Each frame then runs the physics, rasterises nodes and edges into a decaying
trail with bloom, and screens that layer over a static pitch-class wheel.
"""

import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw
from scipy.ndimage import gaussian_filter

from chromagraph.experiment.colorgrade import (
    DORMANT_RGB,
    add_glow,
    pitch_class_rgb,
    scale_rgb,
    screen_blend,
    tone_map_soft,
    vignette,
)
from chromagraph.gra.engine import GRAConfig, GRAEngine

CHROMA_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
EDGE_RGB = (100, 150, 200)


def chroma_to_pitch_class(name: Optional[str]) -> Optional[int]:
    """Map a manifest chroma name ("C", "F#", ...) to 0-11, or None."""
    if name is None:
        return None
    try:
        return CHROMA_NAMES.index(name)
    except ValueError:
        return None


@dataclass
class GRARenderConfig:
    """Configuration for the automaton renderer."""
    width: int = 960
    height: int = 960
    fps: int = 60

    # Automaton
    seed_graph: str = "diatonic"
    rule_cycle: Tuple[int, ...] = (2182, 2238, 549, 1638)
    rule_change_beats: int = 16
    engine: GRAConfig = field(default_factory=GRAConfig)

    # Audio mapping
    impulse_gain: float = 3.0
    step_on_onset: bool = True
    physics_per_frame: int = 1

    # Drawing
    show_pitch_wheel: bool = True
    wheel_alpha: float = 0.08
    trail_persistence: float = 0.82
    trail_blur: float = 1.2

    # Post-processing
    glow_enabled: bool = True
    glow_intensity: float = 0.35
    glow_radius: int = 8
    glow_threshold: int = 96
    vignette_strength: float = 0.3


class GRARenderer:
    """
    Drives a GRAEngine from audio features and draws it.
    Local random state keeps multiple instances independent.
    """

    def __init__(self, config: Optional[GRARenderConfig] = None, seed: Optional[int] = None):
        self.cfg = config or GRARenderConfig()
        self.seed = seed
        self._reset()

    def _reset(self):
        self.rng = random.Random(self.seed)
        self.engine = GRAEngine(self.cfg.engine, rng=self.rng)
        if self.cfg.rule_cycle:
            self.engine.rule = self.cfg.rule_cycle[0]
        self.engine.create_seed(self.cfg.seed_graph)

        self.beat_count = 0
        self.rule_index = 0
        self.trail = np.zeros((self.cfg.height, self.cfg.width, 3), dtype=np.float32)
        self.wheel = self._draw_pitch_wheel() if self.cfg.show_pitch_wheel else None

        self._smooth_energy = 0.1
        self._smooth_percussive = 0.0
        self._smooth_harmonic = 0.2

    def _lerp(self, current: float, target: float, factor: float) -> float:
        return current + (target - current) * factor

    def _smooth_audio(self, frame_data: Dict[str, Any]):
        fast = 0.35 if frame_data.get("is_beat", False) else 0.15
        slow = 0.06
        self._smooth_energy = self._lerp(self._smooth_energy, frame_data.get("global_energy", 0.1), slow)
        self._smooth_percussive = self._lerp(self._smooth_percussive, frame_data.get("percussive_impact", 0.0), fast)
        self._smooth_harmonic = self._lerp(self._smooth_harmonic, frame_data.get("harmonic_energy", 0.2), slow)

    def _advance_rule(self):
        self.rule_index = (self.rule_index + 1) % len(self.cfg.rule_cycle)
        self.engine.rule = self.cfg.rule_cycle[self.rule_index]

    def update(self, frame_data: Dict[str, Any]):
        """Apply one frame of musical events to the engine."""
        self._smooth_audio(frame_data)

        if frame_data.get("is_beat", False):
            self.beat_count += 1
            kick = max(frame_data.get("percussive_impact", 0.0), self._smooth_energy)
            self.engine.impulse(kick * self.cfg.impulse_gain)

            pc = chroma_to_pitch_class(frame_data.get("dominant_chroma"))
            if pc is not None:
                self.engine.flip_by_pitch_class(pc)

            if (
                self.cfg.rule_cycle
                and self.cfg.rule_change_beats > 0
                and self.beat_count % self.cfg.rule_change_beats == 0
            ):
                self._advance_rule()

        if self.cfg.step_on_onset and frame_data.get("is_onset", False):
            self.engine.step()

        for _ in range(self.cfg.physics_per_frame):
            self.engine.physics()

        # Everything faded away: start over from the seed
        if len(self.engine.nodes) == 0:
            self.engine.create_seed(self.cfg.seed_graph)

    def _layout_transform(self) -> Callable[[float, float], Tuple[float, float]]:
        ecx, ecy = self.engine.center
        scale = min(self.cfg.width / self.cfg.engine.width, self.cfg.height / self.cfg.engine.height)
        fcx, fcy = self.cfg.width / 2, self.cfg.height / 2

        def transform(x: float, y: float) -> Tuple[float, float]:
            return fcx + (x - ecx) * scale, fcy + (y - ecy) * scale

        return transform

    def _draw_pitch_wheel(self) -> np.ndarray:
        """Static background: one faint sector per pitch class, matching the flip sectors."""
        w, h = self.cfg.width, self.cfg.height
        img = Image.new("RGB", (w, h), (0, 0, 0))
        draw = ImageDraw.Draw(img)
        r = min(w, h) / 2 - 10
        box = [w / 2 - r, h / 2 - r, w / 2 + r, h / 2 + r]
        for pc in range(12):
            # Sector pc covers atan2 angles [pc*30 - 180, pc*30 - 150) degrees
            start = pc * 30 - 180
            draw.pieslice(box, start, start + 30, fill=scale_rgb(pitch_class_rgb(pc), self.cfg.wheel_alpha))
        return np.asarray(img)

    def draw_graph(self) -> np.ndarray:
        """Rasterise nodes and edges (no background) to an (H, W, 3) uint8 array."""
        w, h = self.cfg.width, self.cfg.height
        img = Image.new("RGB", (w, h), (0, 0, 0))
        draw = ImageDraw.Draw(img)

        transform = self._layout_transform()
        scale = min(w / self.cfg.engine.width, h / self.cfg.engine.height)
        energy = self._smooth_energy
        nodes = self.engine.nodes

        edge_width = max(1, int(round((1 + energy) * scale)))
        for i, j in self.engine.store.edges():
            ni, nj = nodes[i], nodes[j]
            alpha = min(ni.alpha if ni.alpha is not None else 1.0, nj.alpha if nj.alpha is not None else 1.0)
            color = scale_rgb(EDGE_RGB, alpha * (0.3 + energy * 0.3))
            draw.line([transform(ni.x, ni.y), transform(nj.x, nj.y)], fill=color, width=edge_width)

        for node in nodes:
            alpha = node.alpha if node.alpha is not None else 1.0
            if alpha <= 0:
                continue

            x, y = transform(node.x, node.y)
            radius = ((7 if node.state == 1 else 4) + energy * 2 + self._smooth_percussive * 2) * scale
            if node.state == 1:
                base = pitch_class_rgb(self.engine.pitch_class_of(node), saturation=0.6 + self._smooth_harmonic * 0.4)
            else:
                base = DORMANT_RGB
            draw.ellipse([x - radius, y - radius, x + radius, y + radius], fill=scale_rgb(base, alpha))

            if node.state == 1 and alpha > 0.3:
                halo = radius + 4 * scale
                draw.ellipse(
                    [x - halo, y - halo, x + halo, y + halo],
                    outline=scale_rgb(base, alpha * 0.27),
                    width=max(1, int(2 * scale)),
                )

        return np.asarray(img)

    def _composite_trail(self, frame: np.ndarray) -> np.ndarray:
        if self.cfg.trail_persistence <= 0:
            return frame
        decayed = self.trail * self.cfg.trail_persistence
        if self.cfg.trail_blur > 0:
            decayed = gaussian_filter(decayed, sigma=(self.cfg.trail_blur, self.cfg.trail_blur, 0))
        self.trail = np.maximum(frame.astype(np.float32), decayed)
        return np.clip(self.trail, 0, 255).astype(np.uint8)

    def render_frame(self, frame_data: Dict[str, Any], frame_index: int) -> np.ndarray:
        """Advance the automaton by one frame and return the finished RGB image."""
        self.update(frame_data)
        layer = self._composite_trail(self.draw_graph())

        if self.cfg.glow_enabled:
            intensity = min(self.cfg.glow_intensity * (1.0 + self._smooth_percussive * 0.5), 0.8)
            layer = add_glow(
                layer,
                intensity=intensity,
                radius=self.cfg.glow_radius,
                threshold=self.cfg.glow_threshold,
            )
        # Only the graph layer is tone mapped; the wheel stays at its fixed tint
        layer = tone_map_soft(layer)

        frame = screen_blend(self.wheel, layer) if self.wheel is not None else layer
        if self.cfg.vignette_strength > 0:
            frame = vignette(frame, strength=self.cfg.vignette_strength)
        return frame

    def render_manifest(
        self,
        manifest: Dict[str, Any],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Iterator[np.ndarray]:
        """Yield one frame per manifest entry, starting from a fresh seed."""
        frames = manifest.get("frames", [])
        total = len(frames)
        self._reset()
        for i, frame_data in enumerate(frames):
            yield self.render_frame(frame_data, i)
            if progress_callback:
                progress_callback(i + 1, total)
