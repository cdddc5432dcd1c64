"""Offline stand-in for the host engine's trigger system.

:class:`BeamScene` owns a set of beams, one tracker per beam, and an
:class:`~beamoverlap.events.OverlapEventQueue`.  Each :meth:`BeamScene.step`
tests every pair of beams the way a capsule trigger collider would
(axis segment distance against the radius sum) and posts begin,
continue and end events to both sides of each pair.

Pairs are tested exhaustively; this is meant for tests, batch runs and
the command line, not for real-time use.
"""

from __future__ import annotations

from itertools import combinations
from typing import Dict, FrozenSet, Hashable, Iterator, List, Optional, Set

from loguru import logger

from beamoverlap.beam import Beam
from beamoverlap.events import OverlapEventKind, OverlapEventQueue
from beamoverlap.geom import boxoverlap, segment_distance
from beamoverlap.overlap import Estimator
from beamoverlap.tracker import BeamCollisionTracker, VisualListener

Pair = FrozenSet[Hashable]


def capsules_touch(beam_a: Beam, beam_b: Beam) -> bool:
    """Do the capsules around the two beam axes intersect (touching counts)?"""
    if not boxoverlap(beam_a.bbox(), beam_b.bbox()):
        return False
    gap = segment_distance(beam_a.origin, beam_a.endpoint, beam_b.origin, beam_b.endpoint)
    return gap <= beam_a.radius + beam_b.radius


class BeamScene:
    """A collection of beams whose trackers are driven by :meth:`step`."""

    def __init__(self, estimator: Optional[Estimator] = None,
                 listener: Optional[VisualListener] = None):
        self._estimator = estimator
        self._listener = listener
        self._beams: Dict[Hashable, Beam] = {}
        self._queue = OverlapEventQueue()
        self._active: Set[Pair] = set()

    def add_beam(self, beam_id: Hashable, beam: Beam) -> BeamCollisionTracker:
        if beam_id in self._beams:
            raise ValueError(f"beam {beam_id!r} already exists")
        tracker = BeamCollisionTracker(beam_id, beam, self._estimator, self._listener)
        self._beams[beam_id] = beam
        self._queue.register(tracker)
        return tracker

    def remove_beam(self, beam_id: Hashable) -> None:
        """Remove a beam, ending its overlaps on both sides first."""
        beam = self._beams[beam_id]
        for pair in [p for p in self._active if beam_id in p]:
            (other,) = pair - {beam_id}
            self._queue.post_pair(OverlapEventKind.END, beam_id, beam,
                                  other, self._beams[other])
            self._active.discard(pair)
        self._queue.dispatch()
        self._queue.unregister(beam_id)
        del self._beams[beam_id]

    def move_beam(self, beam_id: Hashable, beam: Beam) -> None:
        """Replace a beam's geometry; overlaps are re-evaluated on the next step."""
        if beam_id not in self._beams:
            raise KeyError(beam_id)
        self._beams[beam_id] = beam
        self._queue.tracker(beam_id).update_geometry(beam)

    def beam(self, beam_id: Hashable) -> Beam:
        return self._beams[beam_id]

    def tracker(self, beam_id: Hashable) -> BeamCollisionTracker:
        tracker = self._queue.tracker(beam_id)
        if tracker is None:
            raise KeyError(beam_id)
        return tracker

    def trackers(self) -> Iterator[BeamCollisionTracker]:
        for beam_id in self._beams:
            yield self._queue.tracker(beam_id)

    def beam_ids(self) -> List[Hashable]:
        return list(self._beams)

    def overlapping_pairs(self) -> Set[Pair]:
        return set(self._active)

    def step(self) -> int:
        """Run one trigger pass and deliver the resulting events.

        Returns the number of events delivered to trackers.
        """
        current: Set[Pair] = set()
        for (id_a, beam_a), (id_b, beam_b) in combinations(self._beams.items(), 2):
            pair = frozenset((id_a, id_b))
            if capsules_touch(beam_a, beam_b):
                current.add(pair)
                kind = (OverlapEventKind.CONTINUE if pair in self._active
                        else OverlapEventKind.BEGIN)
                self._queue.post_pair(kind, id_a, beam_a, id_b, beam_b)
            elif pair in self._active:
                self._queue.post_pair(OverlapEventKind.END, id_a, beam_a, id_b, beam_b)

        self._active = current
        delivered = self._queue.dispatch()
        logger.debug("scene step: {} beams, {} overlapping pairs, {} events",
                     len(self._beams), len(current), delivered)
        return delivered


__all__ = ["BeamScene", "capsules_touch"]
