"""The ``Beam`` value type: a finite solid cylinder in 3-D space."""

from __future__ import annotations

from dataclasses import dataclass, replace
from math import isfinite, pi
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from beamoverlap.errors import GeometryError
from beamoverlap.geom import (
    BBox,
    Vec3,
    add,
    bbox,
    bbox_expand,
    epsilon,
    isfinitevec,
    mag,
    normalize,
    scale3,
    sub,
    vec3,
    vstr,
)


@dataclass(frozen=True)
class Beam:
    """A finite cylinder defined by its axis start, unit direction, radius
    and length.

    ``direction`` is normalised on construction.  A zero-length
    direction, a non-positive ``radius`` or ``length``, or non-finite
    values raise :class:`GeometryError`.
    """

    origin: Vec3
    direction: Vec3
    radius: float
    length: float
    name: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            origin = vec3(self.origin)
            direction = vec3(self.direction)
            radius = float(self.radius)
            length = float(self.length)
        except (TypeError, ValueError) as exc:
            raise GeometryError(f"invalid beam geometry: {exc}") from exc

        if not isfinitevec(origin):
            raise GeometryError(f"beam origin must be finite, got {vstr(origin)}")
        if not isfinitevec(direction):
            raise GeometryError(f"beam direction must be finite, got {vstr(direction)}")
        if not isfinite(radius) or radius <= 0.0:
            raise GeometryError(f"beam radius must be positive, got {radius}")
        if not isfinite(length) or length <= 0.0:
            raise GeometryError(f"beam length must be positive, got {length}")

        try:
            direction = normalize(direction)
        except ValueError as exc:
            raise GeometryError("beam direction cannot be zero") from exc

        # frozen dataclass: bypass __setattr__ to store the normalised values
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "direction", direction)
        object.__setattr__(self, "radius", radius)
        object.__setattr__(self, "length", length)

    @classmethod
    def from_endpoints(cls, start: Sequence[float], end: Sequence[float],
                       radius: float, name: Optional[str] = None) -> "Beam":
        """Build a beam whose axis runs from ``start`` to ``end``."""
        try:
            s = vec3(start)
            e = vec3(end)
        except (TypeError, ValueError) as exc:
            raise GeometryError(f"invalid beam endpoints: {exc}") from exc
        axis = sub(e, s)
        length = mag(axis)
        if length < epsilon:
            raise GeometryError("beam endpoints coincide")
        return cls(origin=s, direction=axis, radius=radius, length=length, name=name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], name: Optional[str] = None) -> "Beam":
        """Build a beam from a mapping.

        Accepts either ``origin``/``direction``/``length`` or
        ``start``/``end``; ``radius`` is always required.
        """
        if name is None:
            name = data.get("name", data.get("id"))
        if name is not None:
            name = str(name)
        if "radius" not in data:
            raise GeometryError("beam is missing 'radius'")
        if "start" in data or "end" in data:
            if "start" not in data or "end" not in data:
                raise GeometryError("beam needs both 'start' and 'end'")
            return cls.from_endpoints(data["start"], data["end"], data["radius"], name=name)
        missing = [k for k in ("origin", "direction", "length") if k not in data]
        if missing:
            raise GeometryError(f"beam is missing {', '.join(repr(k) for k in missing)}")
        return cls(origin=data["origin"], direction=data["direction"],
                   radius=data["radius"], length=data["length"], name=name)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "origin": list(self.origin),
            "direction": list(self.direction),
            "radius": self.radius,
            "length": self.length,
        }
        if self.name is not None:
            out["name"] = self.name
        return out

    def moved(self, **changes: Any) -> "Beam":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @property
    def endpoint(self) -> Vec3:
        """``origin + direction * length``"""
        return add(self.origin, scale3(self.direction, self.length))

    @property
    def axis(self) -> Tuple[Vec3, Vec3]:
        return self.origin, self.endpoint

    @property
    def volume(self) -> float:
        return pi * self.radius * self.radius * self.length

    def bbox(self) -> BBox:
        """Bounding box of the axis endpoints, padded by the radius.

        This always encloses the solid cylinder.
        """
        return bbox_expand(bbox([self.origin, self.endpoint]), self.radius)

    def label(self) -> str:
        return self.name if self.name is not None else "<beam>"

    def __str__(self) -> str:
        return (f"Beam {self.label()}: origin {vstr(self.origin)}, "
                f"direction {vstr(self.direction)}, radius {self.radius:g}, "
                f"length {self.length:g}")


__all__ = ["Beam"]
