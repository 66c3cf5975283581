"""
Headless simulation CLI for the Graph Rewriting Automaton.

Usage:
    chromagraph-sim [options]
    chromagraph-sim --list-rules
"""

import argparse
import json
import logging
import sys
import time
from dataclasses import replace

from chromagraph.gra.engine import GRAConfig, GRAEngine
from chromagraph.gra.rules import PHYSICS_PRESETS, RULE_PRESETS, RuleTable
from chromagraph.gra.seeds import SEED_KINDS


def _print_rules():
    print("Name        Rule  R         R'        Description")
    for preset in RULE_PRESETS:
        table = RuleTable(preset.rule)
        print(
            f"{preset.name:<10} {preset.rule:>5}  {table.r_bits()}  "
            f"{table.r_prime_bits()}  {preset.desc}"
        )
    print()
    print("Physics     Damping  Repulsion  Spring k  Rest")
    for preset in PHYSICS_PRESETS:
        print(
            f"{preset.name:<10} {preset.damping:>8.2f}  {preset.repulsion:>9.0f}  "
            f"{preset.spring_k:>8.2f}  {preset.spring_rest:>4.0f}"
        )


def add_physics_arguments(parser: argparse.ArgumentParser):
    """Layout options shared by the simulation and render CLIs."""
    parser.add_argument(
        "--physics-preset", type=str, default="default",
        choices=[p.name for p in PHYSICS_PRESETS],
        help="Layout feel: damping and force tunables (default: default)",
    )
    parser.add_argument("--damping", type=float, default=None, help="Velocity damping (overrides the preset)")
    parser.add_argument("--repulsion", type=float, default=None, help="Pairwise repulsion (overrides the preset)")
    parser.add_argument("--spring-k", type=float, default=None, help="Spring stiffness (overrides the preset)")
    parser.add_argument("--spring-rest", type=float, default=None, help="Spring rest length (overrides the preset)")


def physics_config(config: GRAConfig, args: argparse.Namespace) -> GRAConfig:
    """Apply --physics-preset, then any explicit force or damping overrides."""
    config = config.with_physics_preset(args.physics_preset)
    overrides = {
        "damping": args.damping,
        "repulsion": args.repulsion,
        "spring_k": args.spring_k,
        "spring_rest": args.spring_rest,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def _format_stats(stats: dict) -> str:
    return (
        f"t={stats['time']:<5} nodes={stats['nodes']:<5} edges={stats['edges']:<5} "
        f"alive={stats['alive']:<5} divisions={stats['divisions']}"
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="chromagraph-sim",
        description="Run a Graph Rewriting Automaton without rendering",
    )

    parser.add_argument(
        "-g", "--seed-graph", type=str, default="diatonic",
        choices=list(SEED_KINDS),
        help="Initial topology (default: diatonic)",
    )
    parser.add_argument(
        "-r", "--rule", type=int, default=2182,
        help="16-bit rule number (default: 2182)",
    )
    parser.add_argument(
        "-d", "--fan-out", type=int, default=3,
        help="Division fan-out and configuration scale (default: 3)",
    )
    parser.add_argument(
        "-n", "--steps", type=int, default=200,
        help="Discrete steps to run (default: 200)",
    )
    parser.add_argument(
        "--physics-per-step", type=int, default=4,
        help="Physics ticks between discrete steps (default: 4)",
    )
    add_physics_arguments(parser)
    parser.add_argument("--max-nodes", type=int, default=2000, help="Node cap (default: 2000)")
    parser.add_argument(
        "--overflow", type=str, default="clamp", choices=["clamp", "wrap"],
        help="Handling of configurations above 7 (default: clamp)",
    )
    parser.add_argument(
        "--tiebreak", type=str, default="first", choices=["first", "random"],
        help="Which candidate divides when several qualify (default: first)",
    )
    parser.add_argument("--rng-seed", type=int, default=None, help="Random seed for reproducible runs")
    parser.add_argument(
        "--report-every", type=int, default=20,
        help="Print stats every N steps (default: 20, 0 disables)",
    )
    parser.add_argument("--json", action="store_true", help="Emit the stats history as JSON")
    parser.add_argument("--list-rules", action="store_true", help="Show rule presets and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.list_rules:
        _print_rules()
        return 0

    if not 0 <= args.rule <= 0xFFFF:
        print(f"Error: rule must be in 0..65535, got {args.rule}", file=sys.stderr)
        sys.exit(1)
    if args.fan_out < 1:
        print(f"Error: fan-out must be >= 1, got {args.fan_out}", file=sys.stderr)
        sys.exit(1)

    config = GRAConfig(
        rule=args.rule,
        d=args.fan_out,
        max_nodes=args.max_nodes,
        config_overflow=args.overflow,
        division_tiebreak=args.tiebreak,
    )
    config = physics_config(config, args)
    engine = GRAEngine(config, rng=args.rng_seed)
    engine.create_seed(args.seed_graph)

    history = [engine.get_stats()]
    if not args.json:
        table = engine.rules
        print(f"Seed: {args.seed_graph}, Rule: {args.rule} (R={table.r_bits()}, R'={table.r_prime_bits()})")
        print(
            f"Physics: {args.physics_preset} (damping={config.damping}, repulsion={config.repulsion:g}, "
            f"spring_k={config.spring_k}, rest={config.spring_rest:g})"
        )
        print(f"  {_format_stats(history[0])}")

    t0 = time.time()
    for i in range(1, args.steps + 1):
        engine.step()
        for _ in range(args.physics_per_step):
            engine.physics()
        stats = engine.get_stats()
        history.append(stats)
        if not args.json and args.report_every and i % args.report_every == 0:
            print(f"  {_format_stats(stats)}")

    if args.json:
        print(json.dumps(history, indent=2))
    else:
        elapsed = time.time() - t0
        print(f"\nDone! {args.steps} steps in {elapsed:.2f}s")
        print(f"  Final: {_format_stats(history[-1])}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
