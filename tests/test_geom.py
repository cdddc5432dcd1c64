import math

import pytest

from beamoverlap.geom import (
    bbox,
    bbox_expand,
    bbox_intersection,
    bbox_volume,
    boxoverlap,
    dist,
    dot,
    normalize,
    perpendicular,
    segment_distance,
    vec3,
)


def test_vec3_accepts_lists_and_homogeneous_points():
    assert vec3([1, 2, 3]) == (1.0, 2.0, 3.0)
    assert vec3((1.5, -2, 0, 1)) == (1.5, -2.0, 0.0)
    with pytest.raises(ValueError):
        vec3([1, 2])
    with pytest.raises(ValueError):
        vec3("xyz")


def test_vector_basics():
    x = (1.0, 0.0, 0.0)
    y = (0.0, 1.0, 0.0)
    assert dot(x, y) == 0.0
    assert math.isclose(dist((0, 0, 0), (3, 4, 0)), 5.0)
    assert normalize((0.0, 0.0, 2.0)) == (0.0, 0.0, 1.0)
    assert perpendicular((1.0, 1.0, 5.0), (0.0, 0.0, 1.0)) == (1.0, 1.0, 0.0)


def test_normalize_rejects_zero_vector():
    with pytest.raises(ValueError):
        normalize((0.0, 0.0, 0.0))


class TestSegmentDistance:

    def test_parallel_segments(self):
        d = segment_distance((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0))
        assert math.isclose(d, 1.0)

    def test_crossing_segments(self):
        d = segment_distance((0, 0, 0), (1, 0, 0), (0.5, -0.5, 0), (0.5, 0.5, 0))
        assert d == pytest.approx(0.0, abs=1e-12)

    def test_skew_segments(self):
        d = segment_distance((0, 0, 0), (1, 0, 0), (0.5, -1, 1), (0.5, 1, 1))
        assert math.isclose(d, 1.0)

    def test_endpoint_to_endpoint(self):
        # collinear, separated along the shared line
        d = segment_distance((0, 0, 0), (0, 0, 5), (0, 0, 6.5), (0, 0, 10))
        assert math.isclose(d, 1.5)

    def test_degenerate_segments(self):
        assert math.isclose(segment_distance((0, 0, 0), (0, 0, 0), (3, 4, 0), (3, 4, 0)), 5.0)
        assert math.isclose(segment_distance((0, 2, 0), (0, 2, 0), (-1, 0, 0), (1, 0, 0)), 2.0)


class TestBoundingBoxes:

    b1 = [(-10.0, -5.0, -5.0), (-5.0, 5.0, 5.0)]
    b2 = [(-2.5, -2.5, -2.5), (2.5, 2.5, 2.5)]
    # contains b2
    b10 = [(-3.0, -3.0, -3.0), (3.0, 3.0, 3.0)]
    # crosses b2 without any corner inside it
    b20 = [(-15.0, -1.0, -1.0), (15.0, 1.0, 1.0)]

    def test_bbox_of_points(self):
        box = bbox([(0, 0, 0), (1, -2, 3), (-1, 4, 0)])
        assert box == [(-1.0, -2.0, 0.0), (1.0, 4.0, 3.0)]
        with pytest.raises(ValueError):
            bbox([])

    def test_overlap_cases(self):
        assert not boxoverlap(self.b1, self.b2)
        assert boxoverlap(self.b10, self.b2)
        assert boxoverlap(self.b2, self.b10)
        assert boxoverlap(self.b20, self.b2)
        assert boxoverlap(self.b20, self.b1)

    def test_intersection_and_volume(self):
        inter = bbox_intersection(self.b20, self.b2)
        assert inter == [(-2.5, -1.0, -1.0), (2.5, 1.0, 1.0)]
        assert math.isclose(bbox_volume(inter), 20.0)
        assert bbox_intersection(self.b1, self.b2) is None

    def test_expand(self):
        box = bbox_expand(self.b2, 0.5)
        assert box == self.b10
        assert math.isclose(bbox_volume(box), 216.0)
