"""
CLI entry point for the automaton renderer.

Renders an audio-analysis manifest (JSON, one entry per video frame) into a
numbered PNG sequence.

Usage:
    chromagraph-render <manifest.json> [options]
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Callable

from PIL import Image

from chromagraph.experiment.renderer import GRARenderConfig, GRARenderer
from chromagraph.gra.cli import add_physics_arguments, physics_config
from chromagraph.gra.engine import GRAConfig
from chromagraph.gra.rules import RULE_PRESETS
from chromagraph.gra.seeds import SEED_KINDS


def _progress_printer(renderer: GRARenderer, width: int = 35) -> Callable[[int, int], None]:
    """Progress callback that also reports the live graph size."""
    def report(current: int, total: int):
        pct = current / max(total, 1) * 100
        nodes = len(renderer.engine.store)
        if sys.stdout.isatty():
            filled = int(width * current / max(total, 1))
            bar = "#" * filled + "-" * (width - filled)
            sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}  nodes {nodes:<5}")
            sys.stdout.flush()
            if current >= total:
                sys.stdout.write("\n")
        elif current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}  nodes {nodes}", flush=True)

    return report


def _parse_rules(text: str) -> tuple:
    """Comma-separated rule numbers or preset names."""
    names = {p.name.lower(): p.rule for p in RULE_PRESETS}
    rules = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if part.lower() in names:
            rules.append(names[part.lower()])
            continue
        try:
            value = int(part)
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a rule number or preset: {part!r}")
        if not 0 <= value <= 0xFFFF:
            raise argparse.ArgumentTypeError(f"rule out of range 0..65535: {value}")
        rules.append(value)
    if not rules:
        raise argparse.ArgumentTypeError("at least one rule is required")
    return tuple(rules)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="chromagraph-render",
        description="Audio-reactive graph rewriting automaton frame renderer",
    )

    parser.add_argument(
        "manifest",
        type=Path,
        help="Analysis manifest JSON with a 'frames' list",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output directory for PNG frames (default: <manifest>_frames/)",
    )

    # Resolution
    parser.add_argument("--width", type=int, default=960, help="Frame width (default: 960)")
    parser.add_argument("--height", type=int, default=960, help="Frame height (default: 960)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (default: manifest fps or 60)")

    # Automaton
    parser.add_argument(
        "-g", "--seed-graph", type=str, default="diatonic",
        choices=list(SEED_KINDS),
        help="Initial topology (default: diatonic)",
    )
    parser.add_argument(
        "-r", "--rules", type=_parse_rules, default=(2182, 2238, 549, 1638),
        help="Rule cycle, comma-separated numbers or preset names (default: 2182,2238,549,1638)",
    )
    parser.add_argument(
        "--rule-change-beats", type=int, default=16,
        help="Beats between rule changes (default: 16, 0 keeps the first rule)",
    )
    parser.add_argument("-d", "--fan-out", type=int, default=3, help="Division fan-out (default: 3)")
    parser.add_argument("--rng-seed", type=int, default=None, help="Random seed for reproducible renders")
    add_physics_arguments(parser)

    # Post-processing
    parser.add_argument("--no-glow", action="store_true", help="Disable glow")
    parser.add_argument("--no-vignette", action="store_true", help="Disable vignette")
    parser.add_argument("--no-wheel", action="store_true", help="Hide the pitch-class wheel")

    # Limits
    parser.add_argument(
        "--max-duration", type=float, default=None,
        help="Limit output to N seconds",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if not args.manifest.exists():
        print(f"Error: Manifest not found: {args.manifest}", file=sys.stderr)
        sys.exit(1)
    if args.fan_out < 1:
        print(f"Error: fan-out must be >= 1, got {args.fan_out}", file=sys.stderr)
        sys.exit(1)

    with open(args.manifest) as f:
        manifest = json.load(f)

    fps = args.fps or manifest.get("metadata", {}).get("fps", 60)
    output = args.output
    if output is None:
        output = args.manifest.with_name(f"{args.manifest.stem}_frames")
    output.mkdir(parents=True, exist_ok=True)

    if args.max_duration is not None:
        max_frames = int(args.max_duration * fps)
        if max_frames < len(manifest.get("frames", [])):
            manifest["frames"] = manifest["frames"][:max_frames]
            print(f"Limiting to {args.max_duration}s ({max_frames} frames)")

    total_frames = len(manifest.get("frames", []))
    print(f"Rendering {total_frames} frames at {args.width}x{args.height} @ {fps}fps")
    print(f"  Seed: {args.seed_graph}, Rules: {', '.join(str(r) for r in args.rules)}")

    config = GRARenderConfig(
        width=args.width,
        height=args.height,
        fps=fps,
        seed_graph=args.seed_graph,
        rule_cycle=args.rules,
        rule_change_beats=args.rule_change_beats,
        engine=physics_config(GRAConfig(rule=args.rules[0], d=args.fan_out), args),
        show_pitch_wheel=not args.no_wheel,
        glow_enabled=not args.no_glow,
        vignette_strength=0.0 if args.no_vignette else 0.3,
    )
    renderer = GRARenderer(config, seed=args.rng_seed)

    t0 = time.time()
    for i, frame in enumerate(renderer.render_manifest(manifest, progress_callback=_progress_printer(renderer))):
        Image.fromarray(frame).save(output / f"frame_{i:06d}.png")

    elapsed = time.time() - t0
    stats = renderer.engine.get_stats()
    print(f"\nDone! {total_frames} frames in {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Final graph: {stats['nodes']} nodes, {stats['edges']} edges, {stats['divisions']} divisions")
    print(f"  Output: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
