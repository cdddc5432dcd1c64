"""Per-beam collision tracking.

A :class:`BeamCollisionTracker` is owned by one beam.  The host feeds it
begin/continue/end overlap notifications for partner beams; the tracker
keeps one :class:`OverlapRecord` per partner it currently overlaps and
derives a :class:`TrackerAggregate` from them.  When the beam goes from
no overlaps to some overlaps (or back) the tracker asks the host to
swap the displayed color through a listener callback.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from math import fsum
from typing import Callable, Dict, Hashable, Optional, Tuple

from loguru import logger

from beamoverlap.beam import Beam
from beamoverlap.overlap import Estimator, estimate_overlap_volume


class VisualState(Enum):
    """Color the host should display for a beam."""
    DEFAULT = "default"
    OVERLAP_ACTIVE = "overlap-active"


@dataclass
class OverlapRecord:
    """Last known overlap with one partner beam."""
    partner_id: Hashable
    estimated_volume: float


@dataclass(frozen=True)
class TrackerAggregate:
    total_overlap_volume: float = 0.0
    collision_count: int = 0


VisualListener = Callable[["BeamCollisionTracker", VisualState], None]


class BeamCollisionTracker:
    """Track the beams currently overlapping one beam.

    ``estimator`` is any callable ``(own_beam, partner_beam) -> float``;
    it defaults to :func:`~beamoverlap.overlap.estimate_overlap_volume`.
    ``listener`` is called as ``listener(tracker, state)`` each time
    the collision count moves between zero and non-zero.

    Partners are identified by id only; the tracker never stores the
    partner beam, just the volume estimated from the snapshot it was
    given.
    """

    def __init__(self, beam_id: Hashable, geometry: Beam,
                 estimator: Optional[Estimator] = None,
                 listener: Optional[VisualListener] = None):
        self._beam_id = beam_id
        self._geometry = geometry
        self._estimator = estimator if estimator is not None else estimate_overlap_volume
        self._listener = listener
        # dict keeps detection (insertion) order
        self._records: Dict[Hashable, OverlapRecord] = {}
        self._aggregate = TrackerAggregate()
        self._visual_state = VisualState.DEFAULT

    ## read-only views
    ## ---------------

    @property
    def beam_id(self) -> Hashable:
        return self._beam_id

    @property
    def geometry(self) -> Beam:
        return self._geometry

    @property
    def total_overlap_volume(self) -> float:
        return self._aggregate.total_overlap_volume

    @property
    def collision_count(self) -> int:
        return self._aggregate.collision_count

    @property
    def visual_state(self) -> VisualState:
        return self._visual_state

    @property
    def is_overlapping(self) -> bool:
        return self._aggregate.collision_count > 0

    def get_aggregate(self) -> TrackerAggregate:
        return self._aggregate

    def get_tracked_partners(self) -> Tuple[Hashable, ...]:
        """Partner ids in the order they were first detected."""
        return tuple(self._records)

    def get_record(self, partner_id: Hashable) -> Optional[OverlapRecord]:
        record = self._records.get(partner_id)
        return replace(record) if record is not None else None

    def is_tracking(self, partner_id: Hashable) -> bool:
        return partner_id in self._records

    ## event handlers
    ## --------------

    def on_overlap_begin(self, partner_id: Hashable, partner_geometry: Beam) -> None:
        """A partner's volume started overlapping this beam.

        Re-entering an already tracked partner, or a begin for this
        beam's own id, is a no-op.
        """
        if partner_id == self._beam_id or partner_id in self._records:
            return
        volume = self._estimate(partner_geometry)
        self._records[partner_id] = OverlapRecord(partner_id, volume)
        logger.debug("beam {} overlaps {}: {:.2f} cubic units",
                     self._beam_id, partner_id, volume)
        self._refresh()

    def on_overlap_end(self, partner_id: Hashable) -> None:
        """A partner stopped overlapping; unknown partners are ignored."""
        if self._records.pop(partner_id, None) is None:
            return
        logger.debug("beam {} no longer overlaps {}", self._beam_id, partner_id)
        self._refresh()

    def on_overlap_continue(self, partner_id: Hashable,
                            partner_geometry: Optional[Beam] = None) -> None:
        """A tracked partner is still overlapping.

        When a geometry snapshot is given the pair is re-estimated.
        Continue events for untracked partners are ignored.
        """
        record = self._records.get(partner_id)
        if record is None:
            return
        if partner_geometry is not None:
            record.estimated_volume = self._estimate(partner_geometry)
        self._refresh()

    def update_geometry(self, geometry: Beam) -> None:
        """Record this beam's new pose; later estimates use it."""
        self._geometry = geometry

    def reset(self) -> None:
        """Drop every record, as if all partners had ended."""
        self._records.clear()
        self._refresh()

    ## reporting
    ## ---------

    def collision_report(self) -> str:
        lines = [
            f"=== Beam {self._beam_id} Collision Info ===",
            f"Total overlap volume: {self.total_overlap_volume:.2f} cubic units",
            f"Colliding beams: {self.collision_count}",
        ]
        lines.extend(f"  - {partner_id}" for partner_id in self._records)
        return "\n".join(lines)

    def show_collision_info(self) -> str:
        """Log :meth:`collision_report` and return it."""
        report = self.collision_report()
        logger.info("\n{}", report)
        return report

    ## internals
    ## ---------

    def _estimate(self, partner_geometry: Beam) -> float:
        return float(self._estimator(self._geometry, partner_geometry))

    def _refresh(self) -> None:
        # recomputed from scratch so repeated continue events never drift
        self._aggregate = TrackerAggregate(
            total_overlap_volume=fsum(r.estimated_volume for r in self._records.values()),
            collision_count=len(self._records),
        )
        state = VisualState.OVERLAP_ACTIVE if self._records else VisualState.DEFAULT
        if state is not self._visual_state:
            self._visual_state = state
            logger.debug("beam {} visual state -> {}", self._beam_id, state.value)
            if self._listener is not None:
                self._listener(self, state)

    def __repr__(self) -> str:
        return (f"BeamCollisionTracker({self._beam_id!r}, "
                f"count={self.collision_count}, volume={self.total_overlap_volume:.4f})")


__all__ = [
    "VisualState",
    "OverlapRecord",
    "TrackerAggregate",
    "BeamCollisionTracker",
]
