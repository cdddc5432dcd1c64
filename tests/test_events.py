import pytest

from beamoverlap.beam import Beam
from beamoverlap.events import OverlapEvent, OverlapEventKind, OverlapEventQueue
from beamoverlap.tracker import BeamCollisionTracker

Z = (0.0, 0.0, 1.0)


def zbeam(x=0.0):
    return Beam((x, 0.0, 0.0), Z, 1.0, 5.0)


@pytest.fixture
def queue():
    return OverlapEventQueue([BeamCollisionTracker("A", zbeam()),
                              BeamCollisionTracker("B", zbeam(1.5))])


def test_post_pair_reaches_both_trackers(queue):
    queue.post_pair(OverlapEventKind.BEGIN, "A", zbeam(), "B", zbeam(1.5))
    assert queue.pending == 2
    assert queue.dispatch() == 2
    assert queue.pending == 0
    assert queue.tracker("A").get_tracked_partners() == ("B",)
    assert queue.tracker("B").get_tracked_partners() == ("A",)
    assert queue.tracker("A").total_overlap_volume == pytest.approx(
        queue.tracker("B").total_overlap_volume)


def test_events_are_delivered_in_order(queue):
    queue.post(OverlapEvent(OverlapEventKind.BEGIN, "A", "B", zbeam(1.5)))
    queue.post(OverlapEvent(OverlapEventKind.END, "A", "B"))
    queue.post(OverlapEvent(OverlapEventKind.CONTINUE, "A", "B", zbeam(0.1)))
    assert queue.dispatch() == 3
    assert queue.tracker("A").collision_count == 0


def test_unknown_target_is_dropped(queue):
    from loguru import logger

    messages = []
    handler = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        queue.post(OverlapEvent(OverlapEventKind.END, "Q", "A"))
        assert queue.dispatch() == 0
    finally:
        logger.remove(handler)
    assert any("unknown beam 'Q'" in str(m) for m in messages)


def test_begin_requires_geometry():
    with pytest.raises(ValueError):
        OverlapEvent(OverlapEventKind.BEGIN, "A", "B")


def test_register_and_unregister(queue):
    with pytest.raises(ValueError):
        queue.register(BeamCollisionTracker("A", zbeam()))
    removed = queue.unregister("A")
    assert removed.beam_id == "A"
    assert queue.tracker("A") is None
    assert queue.unregister("A") is None


def test_clear(queue):
    queue.post(OverlapEvent(OverlapEventKind.END, "A", "B"))
    queue.clear()
    assert queue.dispatch() == 0
