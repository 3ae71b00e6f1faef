"""Planar vectors, axis-aligned boxes, line segments and ray intersection tests."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

EPSILON = 2.0 ** -23
"""Machine epsilon of a single-precision float, used as the intersection tolerance."""

Scalar = Union[int, float]


def _div(a: float, b: float) -> float:
    """Divide with IEEE semantics: x/0 gives a signed infinity and 0/0 gives NaN."""
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def fmax(a: float, b: float) -> float:
    """Maximum that ignores a NaN operand."""
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    return a if a >= b else b


def fmin(a: float, b: float) -> float:
    """Minimum that ignores a NaN operand."""
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    return a if a <= b else b


@dataclass(frozen=True)
class Vec2:
    """An immutable two-dimensional vector."""

    x: float
    y: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def _apply(self, other: Union["Vec2", Scalar], op: Callable[[float, float], float]) -> "Vec2":
        if isinstance(other, Vec2):
            return Vec2(op(self.x, other.x), op(self.y, other.y))
        if isinstance(other, (int, float)):
            return Vec2(op(self.x, other), op(self.y, other))
        return NotImplemented

    def __add__(self, other):
        return self._apply(other, lambda a, b: a + b)

    def __radd__(self, other):
        return self._apply(other, lambda a, b: b + a)

    def __sub__(self, other):
        return self._apply(other, lambda a, b: a - b)

    def __rsub__(self, other):
        return self._apply(other, lambda a, b: b - a)

    def __mul__(self, other):
        return self._apply(other, lambda a, b: a * b)

    def __rmul__(self, other):
        return self._apply(other, lambda a, b: b * a)

    def __truediv__(self, other):
        return self._apply(other, _div)

    def __rtruediv__(self, other):
        return self._apply(other, lambda a, b: _div(b, a))

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)

    def __abs__(self) -> "Vec2":
        return Vec2(abs(self.x), abs(self.y))

    def min(self, other: "Vec2") -> "Vec2":
        """Component-wise minimum."""
        return Vec2(fmin(self.x, other.x), fmin(self.y, other.y))

    def max(self, other: "Vec2") -> "Vec2":
        """Component-wise maximum."""
        return Vec2(fmax(self.x, other.x), fmax(self.y, other.y))

    def floor(self) -> "Vec2":
        return Vec2(float(math.floor(self.x)), float(math.floor(self.y)))

    def dot(self, other: "Vec2") -> float:
        return self.x * other.x + self.y * other.y

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def rotate(self, other: "Vec2") -> "Vec2":
        """Rotate ``other`` by the angle this (unit) vector represents, scaling by its length."""
        return Vec2(
            self.x * other.x - self.y * other.y,
            self.y * other.x + self.x * other.y,
        )

    def normalize_or_zero(self) -> "Vec2":
        """Return the unit vector in this direction, or zero if that is not defined."""
        length = self.length()
        if length == 0 or not math.isfinite(length):
            return Vec2(0.0, 0.0)
        recip = 1.0 / length
        if not math.isfinite(recip) or recip <= 0:
            return Vec2(0.0, 0.0)
        return self * recip

    def midpoint(self, other: "Vec2") -> "Vec2":
        return (self + other) * 0.5


Vec2.ZERO = Vec2(0.0, 0.0)
Vec2.X = Vec2(1.0, 0.0)
Vec2.Y = Vec2(0.0, 1.0)
Vec2.NEG_Y = Vec2(0.0, -1.0)


def from_angle(angle: float) -> Vec2:
    """Unit vector pointing at ``angle`` radians from the positive x axis."""
    return Vec2(math.cos(angle), math.sin(angle))


@dataclass(frozen=True)
class Box2D:
    """An axis-aligned box given by its minimum and maximum corners."""

    min: Vec2
    max: Vec2

    def size(self) -> Vec2:
        return self.max - self.min

    def centroid(self) -> Vec2:
        return self.max.midpoint(self.min)

    def contains(self, point: Vec2) -> bool:
        """True if the point lies inside the box, borders included."""
        return (
            self.min.x <= point.x <= self.max.x
            and self.min.y <= point.y <= self.max.y
        )

    def contains_box(self, query: "Box2D") -> bool:
        return self.contains(query.min) and self.contains(query.max)

    def intersects(self, query: "Box2D") -> bool:
        """True when the overlap of the two boxes is empty or flat along some axis."""
        low = self.min.max(query.min)
        high = self.max.min(query.max)
        return low.x >= high.x or low.y >= high.y

    def encase(self, other: "Box2D") -> "Box2D":
        """Smallest box holding both boxes."""
        return Box2D(self.min.min(other.min), self.max.max(other.max))

    def split_vertical(self) -> tuple["Box2D", "Box2D"]:
        """Split at the middle height into the lower and the upper half."""
        mid = self.centroid()
        return (
            Box2D(self.min, Vec2(self.max.x, mid.y)),
            Box2D(Vec2(self.min.x, mid.y), self.max),
        )

    def split_horizontal(self) -> tuple["Box2D", "Box2D"]:
        """Split at the middle width into the left and the right half."""
        mid = self.centroid()
        return (
            Box2D(self.min, Vec2(mid.x, self.max.y)),
            Box2D(Vec2(mid.x, self.min.y), self.max),
        )

    def split(self) -> tuple["Box2D", "Box2D", "Box2D", "Box2D"]:
        """Split into quadrants: upper right, lower right, lower left, upper left."""
        mid = self.centroid()
        return (
            Box2D(mid, self.max),
            Box2D(Vec2(mid.x, self.min.y), Vec2(self.max.x, mid.y)),
            Box2D(self.min, mid),
            Box2D(Vec2(self.min.x, mid.y), Vec2(mid.x, self.max.y)),
        )


@dataclass(frozen=True)
class LineSegment:
    """A directed line segment from ``start`` to ``end``."""

    start: Vec2
    end: Vec2

    def reverse(self) -> "LineSegment":
        return LineSegment(self.end, self.start)

    def midpoint(self) -> Vec2:
        return self.start.midpoint(self.end)

    def get_box(self) -> Box2D:
        return Box2D(self.start.min(self.end), self.start.max(self.end))


def intersect_ray_box(pos: Vec2, direction: Vec2, box: Box2D) -> Optional[float]:
    """Distance along the ray to the box, or None if the ray misses it.

    A ray starting inside the box reports the distance to where it leaves.
    """
    center = (box.min + box.max) / 2.0
    half_extent = (box.max - box.min) / 2.0
    shifted = pos - center
    m = 1.0 / direction
    n = m * shifted
    k = abs(m) * half_extent

    t_near = fmax(-n.x - k.x, -n.y - k.y)
    t_far = fmin(-n.x + k.x, -n.y + k.y)

    if t_near > t_far or t_far < EPSILON:
        return None
    if t_near < EPSILON:
        return t_far
    if t_near >= EPSILON:
        return t_near
    return None


def intersect_ray_line_segment(
    pos: Vec2, direction: Vec2, segment: LineSegment
) -> Optional[float]:
    """Distance along the ray to the segment, or None if it misses or runs parallel."""
    a, b = segment.start, segment.end
    denom = direction.x * (b.y - a.y) - direction.y * (b.x - a.x)
    if abs(denom) < EPSILON:
        return None

    u = (direction.x * (pos.y - a.y) - direction.y * (pos.x - a.x)) / denom
    if not 0.0 <= u <= 1.0:
        return None

    t = ((pos.x - a.x) * (a.y - b.y) - (pos.y - a.y) * (a.x - b.x)) / denom
    return t if t > EPSILON else None