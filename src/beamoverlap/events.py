"""Host adapter: overlap events and their delivery to trackers.

The host (a game engine, a simulator, or :class:`beamoverlap.scene.BeamScene`)
posts :class:`OverlapEvent` objects; :meth:`OverlapEventQueue.dispatch`
delivers them in FIFO order, one at a time, on the caller's thread.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, Hashable, Iterable, Optional

from loguru import logger

from beamoverlap.beam import Beam
from beamoverlap.tracker import BeamCollisionTracker


class OverlapEventKind(Enum):
    BEGIN = "begin"
    CONTINUE = "continue"
    END = "end"


@dataclass(frozen=True)
class OverlapEvent:
    """One side of a pairwise overlap notification.

    ``target_id`` is the beam whose tracker receives the event;
    ``partner_geometry`` is the partner's geometry snapshot at the time
    the event was produced (required for ``BEGIN``).
    """
    kind: OverlapEventKind
    target_id: Hashable
    partner_id: Hashable
    partner_geometry: Optional[Beam] = None

    def __post_init__(self) -> None:
        if self.kind is OverlapEventKind.BEGIN and self.partner_geometry is None:
            raise ValueError("BEGIN events must carry the partner geometry")


class OverlapEventQueue:
    """FIFO queue routing overlap events to registered trackers."""

    def __init__(self, trackers: Iterable[BeamCollisionTracker] = ()):
        self._trackers: Dict[Hashable, BeamCollisionTracker] = {}
        self._queue: Deque[OverlapEvent] = deque()
        for tracker in trackers:
            self.register(tracker)

    def register(self, tracker: BeamCollisionTracker) -> None:
        if tracker.beam_id in self._trackers:
            raise ValueError(f"a tracker for beam {tracker.beam_id!r} is already registered")
        self._trackers[tracker.beam_id] = tracker

    def unregister(self, beam_id: Hashable) -> Optional[BeamCollisionTracker]:
        return self._trackers.pop(beam_id, None)

    def tracker(self, beam_id: Hashable) -> Optional[BeamCollisionTracker]:
        return self._trackers.get(beam_id)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def post(self, event: OverlapEvent) -> None:
        self._queue.append(event)

    def post_pair(self, kind: OverlapEventKind,
                  id_a: Hashable, beam_a: Optional[Beam],
                  id_b: Hashable, beam_b: Optional[Beam]) -> None:
        """Post one event to each side of the pair ``(a, b)``.

        Each side receives the other side's geometry snapshot.
        """
        self.post(OverlapEvent(kind, id_a, id_b, beam_b))
        self.post(OverlapEvent(kind, id_b, id_a, beam_a))

    def dispatch(self) -> int:
        """Deliver every queued event; return how many reached a tracker.

        Events posted while dispatching are delivered in the same call.
        """
        delivered = 0
        while self._queue:
            event = self._queue.popleft()
            tracker = self._trackers.get(event.target_id)
            if tracker is None:
                logger.warning("dropping {} event for unknown beam {!r}",
                               event.kind.value, event.target_id)
                continue
            if event.kind is OverlapEventKind.BEGIN:
                tracker.on_overlap_begin(event.partner_id, event.partner_geometry)
            elif event.kind is OverlapEventKind.CONTINUE:
                tracker.on_overlap_continue(event.partner_id, event.partner_geometry)
            else:
                tracker.on_overlap_end(event.partner_id)
            delivered += 1
        return delivered

    def clear(self) -> None:
        self._queue.clear()


__all__ = ["OverlapEventKind", "OverlapEvent", "OverlapEventQueue"]
