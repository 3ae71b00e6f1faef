"""Occupancy grid with object labelling, boundary extraction and ray casting."""

from __future__ import annotations

import itertools
import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional

from scenesim.bvh import BVH, Direction, build_bvh
from scenesim.geometry import (
    Box2D,
    LineSegment,
    Vec2,
    intersect_ray_box,
    intersect_ray_line_segment,
)

log = logging.getLogger(__name__)

GridPoint = tuple[int, int]

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_FLIP_HORIZONTAL = Vec2(-1.0, 1.0)


class PixelSizeMismatchError(ValueError):
    """The number of pixels does not match the declared width and height."""

    def __init__(self, count: int, shape: tuple[int, int]) -> None:
        self.count = count
        self.shape = (shape[0], shape[1])
        super().__init__(
            f"Pixel Size Mismatch: Got {count} pixels but have shape ({shape[0]}, {shape[1]})"
        )


def _floor_i64(value: float) -> int:
    """Floor to a saturating signed 64-bit integer; NaN becomes 0."""
    if math.isnan(value):
        return 0
    if value == math.inf:
        return _I64_MAX
    if value == -math.inf:
        return _I64_MIN
    return max(_I64_MIN, min(_I64_MAX, math.floor(value)))


def boundary_direction(size: GridPoint, node: GridPoint, direction: Direction) -> LineSegment:
    """The edge of pixel ``node`` facing ``direction``, in world coordinates."""
    width, height = size
    x, y = node
    top_left = Vec2(x - width / 2.0, height / 2.0 - y)
    top_right = top_left + Vec2.X
    bottom_right = top_right + Vec2.NEG_Y
    bottom_left = top_left + Vec2.NEG_Y

    if direction is Direction.NORTH:
        return LineSegment(top_left, top_right)
    if direction is Direction.EAST:
        return LineSegment(top_right, bottom_right)
    if direction is Direction.SOUTH:
        return LineSegment(bottom_right, bottom_left)
    return LineSegment(bottom_left, top_left)


@dataclass(eq=False)
class OccupancyMap:
    """A grid of occupied pixels centred on the world origin, y pointing up."""

    size: GridPoint
    pixels: list[bool]
    objects: list[Optional[int]]
    boundaries: list[LineSegment]
    bvh: BVH

    @classmethod
    def from_pixels(cls, size: GridPoint, pixels: Iterable[bool]) -> "OccupancyMap":
        """Label connected occupied regions and collect the edges facing free space."""
        width, height = size
        pixels = [bool(p) for p in pixels]
        if width * height != len(pixels):
            raise PixelSizeMismatchError(len(pixels), (width, height))

        objects: list[Optional[int]] = [None] * len(pixels)
        visited: set[GridPoint] = set()
        boundaries: list[LineSegment] = []
        tags = itertools.count()

        for i, pixel in enumerate(pixels):
            if not pixel or objects[i] is not None:
                continue

            tag = next(tags)
            objects[i] = tag
            stack: list[GridPoint] = [(i % width, i // width)]

            while stack:
                node = stack.pop()
                visited.add(node)
                x, y = node
                neighbours = (
                    ((x - 1, y), x > 0, Direction.WEST),
                    ((x + 1, y), x < width - 1, Direction.EAST),
                    ((x, y - 1), y > 0, Direction.NORTH),
                    ((x, y + 1), y < height - 1, Direction.SOUTH),
                )
                for neighbour, present, direction in neighbours:
                    if not present or neighbour in visited:
                        continue
                    k = neighbour[0] + neighbour[1] * width
                    if pixels[k]:
                        objects[k] = tag
                        stack.append(neighbour)
                    else:
                        boundaries.append(boundary_direction(size, node, direction))

        return cls(
            size=(width, height),
            pixels=pixels,
            objects=objects,
            boundaries=boundaries,
            bvh=build_bvh(boundaries),
        )

    def is_valid_vec2(self, loc: Vec2) -> bool:
        """True if the world point lies strictly inside the map."""
        width, height = self.size
        return abs(loc.x) < width / 2.0 and abs(loc.y) < height / 2.0

    def is_valid(self, loc: GridPoint) -> bool:
        """True if the pixel coordinate lies inside the map."""
        x, y = loc
        width, height = self.size
        return 0 <= x < width and 0 <= y < height

    def translate(self, loc: Vec2) -> GridPoint:
        """Pixel coordinate holding the world point; may fall outside the map."""
        width, height = self.size
        origin_corner = Vec2(width / 2.0, height / 2.0) * _FLIP_HORIZONTAL
        shifted = (origin_corner - loc) * _FLIP_HORIZONTAL
        return _floor_i64(shifted.x), _floor_i64(shifted.y)

    def get_box(self, loc: GridPoint) -> Box2D:
        """World-space box covered by a pixel."""
        width, height = self.size
        origin_corner = Vec2(width / 2.0, height / 2.0) * _FLIP_HORIZONTAL
        top_left = origin_corner - Vec2(float(loc[0]), float(loc[1])) * _FLIP_HORIZONTAL
        bottom_right = top_left + Vec2(1.0, -1.0)
        return Box2D(top_left.min(bottom_right), top_left.max(bottom_right))

    def is_occupied_vec2(self, loc: Vec2) -> bool:
        """Occupancy at a world point; everything outside the map counts as occupied."""
        if not self.is_valid_vec2(loc):
            return True
        x, y = self.translate(loc)
        return self.pixels[x + y * self.size[0]]

    def is_occupied(self, loc: GridPoint) -> bool:
        """Occupancy of a pixel; everything outside the map counts as occupied."""
        if not self.is_valid(loc):
            return True
        x, y = loc
        return self.pixels[x + y * self.size[0]]

    def cast_rays(self, pos: Vec2, direction: Vec2) -> Optional[float]:
        """Distance along the ray to the nearest boundary, or None if nothing is hit."""
        box_map = self.bvh.box_map
        queue = deque([self.bvh.root])
        nearest = math.inf

        while queue:
            node = box_map.get(queue.popleft())
            if node is None or intersect_ray_box(pos, direction, node.rect) is None:
                continue
            if node.children:
                queue.extend(node.children)
            for index in node.elements or ():
                hit = intersect_ray_line_segment(pos, direction, self.boundaries[index])
                if hit is not None and hit < nearest:
                    nearest = hit

        return None if nearest == math.inf else nearest