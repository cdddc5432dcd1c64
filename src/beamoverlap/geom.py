"""foundational vector and bounding-box operations for **beamoverlap**

Points and vectors are plain ``(x, y, z)`` float tuples.  Bounding
boxes are two-element lists ``[min_corner, max_corner]`` of such
tuples, matching the ``[min, max]`` convention used throughout the
package.
"""

from __future__ import annotations

from math import isfinite, sqrt
from typing import Iterable, List, Sequence, Tuple

Vec3 = Tuple[float, float, float]
BBox = List[Vec3]

## constants
epsilon = 0.000005

## operations on scalars
## -----------------------

def isgoodnum(n) -> bool:
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n, bool)) and isinstance(n, (int, float))


## operations on vectors
## ------------------------

def vec3(value: Sequence[float]) -> Vec3:
    """Return the XYZ components of a point-like sequence as a float tuple.

    Raises ``ValueError`` for sequences with fewer than three components
    or with non-numeric components.
    """

    if isinstance(value, (str, bytes)) or len(value) < 3:
        raise ValueError(f"expected three coordinates, got {value!r}")
    comps = []
    for c in value[:3]:
        if not isgoodnum(c) and not hasattr(c, "__float__"):
            raise ValueError(f"non-numeric coordinate in {value!r}")
        comps.append(float(c))
    return comps[0], comps[1], comps[2]


def isfinitevec(a: Sequence[float]) -> bool:
    return isfinite(a[0]) and isfinite(a[1]) and isfinite(a[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    """ 3 vector, `a + b`"""
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def sub(a: Vec3, b: Vec3) -> Vec3:
    """ 3 vector, `a - b`"""
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale3(a: Vec3, c: float) -> Vec3:
    """ 3 vector ``a`` times scalar ``c``"""
    return (a[0] * c, a[1] * c, a[2] * c)


def dot(a: Vec3, b: Vec3) -> float:
    """ 3 vector ``a`` dot ``b`` """
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def mag(a: Vec3) -> float:
    """ compute the magnitude of 3 vector ``a``"""
    return sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def dist(a: Vec3, b: Vec3) -> float:
    """ compute the euclidean distance between two points ``a`` and ``b``"""
    return mag(sub(a, b))


def normalize(a: Vec3) -> Vec3:
    """Return ``a`` scaled to unit length.

    Raises ``ValueError`` if ``a`` is shorter than ``epsilon``.
    """
    m = mag(a)
    if m < epsilon:
        raise ValueError("cannot normalize a zero-length vector")
    return (a[0] / m, a[1] / m, a[2] / m)


def perpendicular(a: Vec3, axis: Vec3) -> Vec3:
    """component of ``a`` perpendicular to the unit vector ``axis``"""
    return sub(a, scale3(axis, dot(a, axis)))


## line segments
## -------------

def segment_distance(p1: Vec3, p2: Vec3, p3: Vec3, p4: Vec3) -> float:
    """Minimum distance between segment ``p1``-``p2`` and segment ``p3``-``p4``.

    Handles parallel and degenerate (point) segments.  Intersecting
    segments return ``0.0``.
    """

    d1 = sub(p2, p1)
    d2 = sub(p4, p3)
    r = sub(p1, p3)

    a = dot(d1, d1)
    e = dot(d2, d2)
    f = dot(d2, r)

    tiny = 1e-12

    if a < tiny and e < tiny:
        return mag(r)

    if a < tiny:
        s = 0.0
        t = _clamp01(f / e)
    else:
        c = dot(d1, r)
        if e < tiny:
            t = 0.0
            s = _clamp01(-c / a)
        else:
            b = dot(d1, d2)
            denom = a * e - b * b
            # parallel segments: any s works, pick the start
            s = _clamp01((b * f - c * e) / denom) if denom > tiny else 0.0
            t = (b * s + f) / e
            if t < 0.0:
                t = 0.0
                s = _clamp01(-c / a)
            elif t > 1.0:
                t = 1.0
                s = _clamp01((b - c) / a)

    closest1 = add(p1, scale3(d1, s))
    closest2 = add(p3, scale3(d2, t))
    return dist(closest1, closest2)


def _clamp01(x: float) -> float:
    return min(1.0, max(0.0, x))


## bounding boxes
## --------------

def bbox(points: Iterable[Sequence[float]]) -> BBox:
    """axis-aligned bounding box ``[min, max]`` of a collection of points"""

    pts = [vec3(p) for p in points]
    if not pts:
        raise ValueError("bbox() needs at least one point")
    lo = (min(p[0] for p in pts), min(p[1] for p in pts), min(p[2] for p in pts))
    hi = (max(p[0] for p in pts), max(p[1] for p in pts), max(p[2] for p in pts))
    return [lo, hi]


def bbox_expand(box: BBox, margin: float) -> BBox:
    """push every face of ``box`` outward by ``margin``"""
    m = (margin, margin, margin)
    return [sub(box[0], m), add(box[1], m)]


def bbox_size(box: BBox) -> Vec3:
    return sub(box[1], box[0])


def bbox_volume(box: BBox) -> float:
    sx, sy, sz = bbox_size(box)
    return max(sx, 0.0) * max(sy, 0.0) * max(sz, 0.0)


def boxoverlap(box1: BBox, box2: BBox) -> bool:
    """Determine if two 3D bounding boxes overlap (touching counts).

    Boxes overlap if and only if their extents overlap along every axis,
    which also covers the box-in-box and crossing cases.
    """
    for i in range(3):
        if box1[1][i] < box2[0][i] or box2[1][i] < box1[0][i]:
            return False
    return True


def bbox_intersection(box1: BBox, box2: BBox) -> BBox | None:
    """Return the overlap box of ``box1`` and ``box2`` or ``None`` if disjoint."""
    if not boxoverlap(box1, box2):
        return None
    lo = tuple(max(box1[0][i], box2[0][i]) for i in range(3))
    hi = tuple(min(box1[1][i], box2[1][i]) for i in range(3))
    return [lo, hi]


def vstr(a: Sequence[float]) -> str:
    """compact string form of a 3 vector"""
    return "({:g}, {:g}, {:g})".format(a[0], a[1], a[2])


__all__ = [
    "Vec3",
    "BBox",
    "epsilon",
    "isgoodnum",
    "vec3",
    "isfinitevec",
    "add",
    "sub",
    "scale3",
    "dot",
    "mag",
    "dist",
    "normalize",
    "perpendicular",
    "segment_distance",
    "bbox",
    "bbox_expand",
    "bbox_size",
    "bbox_volume",
    "boxoverlap",
    "bbox_intersection",
    "vstr",
]
