"""Beam sweep demo: slide one beam across another and watch the trackers.

This example demonstrates:
1. Building a ``BeamScene`` with two beams
2. Moving one beam step by step and running the trigger pass
3. Comparing the closed-form and Monte Carlo estimates at each step

Usage:
    python sweep_demo.py                    # closed-form tracking
    python sweep_demo.py --samples 20000    # also print Monte Carlo estimates
"""

import argparse

from beamoverlap.beam import Beam
from beamoverlap.overlap import estimate_overlap_volume_stochastic
from beamoverlap.scene import BeamScene


def on_visual_state(tracker, state):
    print(f"  [{tracker.beam_id}] color -> {state.value}")


def sweep(steps=9, start=-3.0, stop=3.0, samples=0, seed=1):
    scene = BeamScene(listener=on_visual_state)
    fixed = Beam((0, 0, 0), (0, 0, 1), radius=1.0, length=5.0, name="fixed")
    scene.add_beam("fixed", fixed)
    scene.add_beam("mover", Beam((start, 0, 0), (0, 0, 1), radius=0.75, length=4.0))

    for i in range(steps):
        x = start + (stop - start) * i / (steps - 1)
        mover = scene.beam("mover").moved(origin=(x, 0.0, 0.5))
        scene.move_beam("mover", mover)
        scene.step()
        tracker = scene.tracker("fixed")
        line = f"x={x:+.2f}  count={tracker.collision_count}  volume={tracker.total_overlap_volume:.3f}"
        if samples:
            mc = estimate_overlap_volume_stochastic(fixed, mover, samples, rng=seed,
                                                    parallel_threshold=None)
            line += f"  monte-carlo={mc:.3f}"
        print(line)

    print()
    print(scene.tracker("fixed").collision_report())


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--steps", type=int, default=9)
    parser.add_argument("--samples", type=int, default=0,
                        help="Monte Carlo samples per step (0 disables)")
    parser.add_argument("--seed", type=int, default=1)
    args = parser.parse_args()
    sweep(steps=args.steps, samples=args.samples, seed=args.seed)
