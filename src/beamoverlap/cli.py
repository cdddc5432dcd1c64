"""Command-line front end for overlap estimation and link budgets."""

from __future__ import annotations

import argparse
import sys
from itertools import combinations
from typing import Optional, Sequence

from loguru import logger

from beamoverlap.config import EstimatorConfig, LinkBudgetConfig, load_link_budget, load_scene
from beamoverlap.errors import ConfigError
from beamoverlap.linkbudget import (
    compute_fso_link_budget,
    compute_thz_link_budget,
    format_fso_report,
    format_thz_report,
)
from beamoverlap.overlap import OverlapMethod
from beamoverlap.scene import BeamScene


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.enable("beamoverlap")
    logger.add(sys.stderr, level=level.upper())


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {value}")
    return value


def _estimator_settings(args: argparse.Namespace, base: EstimatorConfig) -> EstimatorConfig:
    if args.method is not None:
        base.method = OverlapMethod.parse(args.method)
    if args.samples is not None:
        base.samples = args.samples
    if args.seed is not None:
        base.seed = args.seed
    return base


def cmd_overlap(args: argparse.Namespace) -> int:
    scene = load_scene(args.scene)
    settings = _estimator_settings(args, scene.estimator)
    estimate = settings.build()
    print(f"method: {settings.method.value}")
    for (id_a, beam_a), (id_b, beam_b) in combinations(scene.beams, 2):
        print(f"{id_a} x {id_b}: {estimate(beam_a, beam_b):.4f}")
    return 0


def cmd_track(args: argparse.Namespace) -> int:
    scene_cfg = load_scene(args.scene)
    settings = _estimator_settings(args, scene_cfg.estimator)
    scene = BeamScene(estimator=settings.build())
    for beam_id, beam in scene_cfg.beams:
        scene.add_beam(beam_id, beam)
    scene.step()
    reports = [tracker.collision_report() for tracker in scene.trackers()]
    print("\n\n".join(reports))
    return 0


def cmd_linkbudget(args: argparse.Namespace) -> int:
    config = load_link_budget(args.config) if args.config else LinkBudgetConfig()
    if args.link == "fso":
        print(format_fso_report(compute_fso_link_budget(config.fso)))
    else:
        print(format_thz_report(compute_thz_link_budget(config.thz)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beamoverlap",
        description="Estimate beam overlap volumes and RF link budgets.")
    parser.add_argument("--log-level", default="WARNING",
                        help="loguru level for stderr output (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_estimator_options(p: argparse.ArgumentParser) -> None:
        p.add_argument("scene", help="Path to the scene YAML file")
        p.add_argument("--method", choices=[m.value for m in OverlapMethod],
                       help="Overlap estimator (default: from scene, else closed_form)")
        p.add_argument("--samples", type=_non_negative_int, help="Monte Carlo sample count")
        p.add_argument("--seed", type=int, help="Monte Carlo random seed")

    p_overlap = sub.add_parser("overlap", help="Print the overlap volume of every beam pair")
    add_estimator_options(p_overlap)
    p_overlap.set_defaults(func=cmd_overlap)

    p_track = sub.add_parser("track", help="Run one trigger pass and print each beam's report")
    add_estimator_options(p_track)
    p_track.set_defaults(func=cmd_track)

    p_link = sub.add_parser("linkbudget", help="Compute an FSO or THz link budget")
    p_link.add_argument("link", choices=["fso", "thz"])
    p_link.add_argument("--config", help="YAML file overriding link parameters")
    p_link.set_defaults(func=cmd_linkbudget)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        return args.func(args)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


__all__ = ["build_parser", "main"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
