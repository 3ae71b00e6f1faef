"""Bounding volume hierarchy over line segments, built from Morton-ordered treelets."""

from __future__ import annotations

import bisect
import enum
import itertools
import math
from dataclasses import dataclass, replace
from functools import reduce
from typing import Iterable, Optional

from scenesim.geometry import Box2D, LineSegment, Vec2

MAX_PRIMS_IN_NODE = 16
_TREELET_MASK = 0xFFFFFFFFFF000000
_U32_MAX = 0xFFFFFFFF
_ZERO_BOX = Box2D(Vec2(0.0, 0.0), Vec2(0.0, 0.0))


class Direction(enum.Enum):
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"


@dataclass(frozen=True)
class BVHNode:
    """A tree node: inner nodes hold child ids, leaves hold segment indices."""

    children: Optional[tuple[int, ...]]
    rect: Box2D
    elements: Optional[tuple[int, ...]]


@dataclass
class BVH:
    """A hierarchy stored as a map from node id to node, with the root's id."""

    box_map: dict[int, BVHNode]
    root: int


def embed_even_bits(x: int) -> int:
    """Spread the 32 bits of ``x`` over the even bit positions of a 64-bit value."""
    x &= _U32_MAX
    x = (x | (x << 16)) & 0x0000FFFF0000FFFF
    x = (x | (x << 8)) & 0x00FF00FF00FF00FF
    x = (x | (x << 4)) & 0x0F0F0F0F0F0F0F0F
    x = (x | (x << 2)) & 0x3333333333333333
    x = (x | (x << 1)) & 0x5555555555555555
    return x


def morton_encode(x: int, y: int) -> int:
    """Interleave the bits of two 32-bit coordinates, x in the even positions."""
    return embed_even_bits(x) | (embed_even_bits(y) << 1)


def _as_u32(value: float) -> int:
    """Saturating float to unsigned 32-bit conversion; NaN becomes 0."""
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U32_MAX:
        return _U32_MAX
    return int(value)


def _encase_all(boxes: Iterable[Box2D]) -> Box2D:
    return reduce(lambda a, b: a.encase(b), boxes, None) or _ZERO_BOX


class _Builder:
    def __init__(self) -> None:
        self.box_map: dict[int, BVHNode] = {}
        self._ids = itertools.count()

    def next_id(self) -> int:
        return next(self._ids)

    def emit_lbvh(
        self, index: int, start: int, end: int, boxes: list[tuple[int, Box2D, int]]
    ) -> tuple[int, BVHNode]:
        while True:
            if index < 0 or end - start <= MAX_PRIMS_IN_NODE:
                span = boxes[start:end]
                node = BVHNode(
                    children=None,
                    rect=_encase_all(bx for _, bx, _ in span),
                    elements=tuple(i for i, _, _ in span),
                )
                return self.next_id(), node

            bit = 1 << index
            first = boxes[start][2] & bit
            if first != boxes[end - 1][2] & bit:
                break
            index -= 1

        split = bisect.bisect_left(
            boxes, True, start, end, key=lambda b: (b[2] & bit) != first
        )
        id1, node1 = self.emit_lbvh(index - 1, start, split, boxes)
        id2, node2 = self.emit_lbvh(index - 1, split, end, boxes)
        return self._join(id1, node1, id2, node2)

    def make_split_tree(
        self,
        depth: int,
        horizontal: bool,
        start: int,
        end: int,
        treelets: list[tuple[int, Box2D]],
        bounding: Box2D,
    ) -> tuple[int, BVHNode]:
        if depth < 0 or end - start <= 2:
            span = treelets[start:end]
            children = tuple(node_id for node_id, _ in span)
            node = BVHNode(
                children=children or None,
                rect=_encase_all(rect for _, rect in span),
                elements=None,
            )
            return self.next_id(), node

        first, second = bounding.split_horizontal() if horizontal else bounding.split_vertical()
        treelets[start:end] = sorted(
            treelets[start:end], key=lambda t: not first.contains(t[1].centroid())
        )
        split = start + sum(1 for _, rect in treelets[start:end] if first.contains(rect.centroid()))

        id1, node1 = self.make_split_tree(depth - 1, not horizontal, start, split, treelets, first)
        id2, node2 = self.make_split_tree(depth - 1, not horizontal, split, end, treelets, second)
        return self._join(id1, node1, id2, node2)

    def _join(self, id1: int, node1: BVHNode, id2: int, node2: BVHNode) -> tuple[int, BVHNode]:
        rect = node1.rect.encase(node2.rect)
        self.box_map[id1] = node1
        self.box_map[id2] = node2
        return self.next_id(), BVHNode(children=(id1, id2), rect=rect, elements=None)


def build_bvh(segments: Iterable[LineSegment]) -> BVH:
    """Build a hierarchy whose leaves index into the given sequence of segments."""
    raw = [(i, segment.get_box()) for i, segment in enumerate(segments)]
    if not raw:
        return BVH(box_map={0: BVHNode(None, _ZERO_BOX, None)}, root=0)

    bounding = _encase_all(bx for _, bx in raw)
    extent = bounding.max - bounding.min

    boxes: list[tuple[int, Box2D, int]] = []
    for i, bx in raw:
        normalized = Box2D((bx.min - bounding.min) / extent, (bx.max - bounding.min) / extent)
        centroid = normalized.centroid() * float(1 << 20)
        boxes.append((i, normalized, morton_encode(_as_u32(centroid.x), _as_u32(centroid.y))))
    boxes.sort(key=lambda b: b[2])

    ranges = []
    start = 0
    for _, group in itertools.groupby(boxes, key=lambda b: b[2] & _TREELET_MASK):
        length = sum(1 for _ in group)
        ranges.append((start, start + length))
        start += length

    first_bit_index = (_TREELET_MASK & -_TREELET_MASK).bit_length() - 1

    builder = _Builder()
    treelets: list[tuple[int, Box2D]] = []
    for lo, hi in ranges:
        node_id, node = builder.emit_lbvh(first_bit_index, lo, hi, boxes)
        builder.box_map[node_id] = node
        treelets.append((node_id, node.rect))

    root_id, root = builder.make_split_tree(
        5, True, 0, len(treelets), treelets, Box2D(Vec2(0.0, 0.0), Vec2(1.0, 1.0))
    )
    builder.box_map[root_id] = root

    box_map = {
        node_id: replace(
            node,
            rect=Box2D(
                node.rect.min * extent + bounding.min,
                node.rect.max * extent + bounding.min,
            ),
        )
        for node_id, node in builder.box_map.items()
    }
    return BVH(box_map=box_map, root=root_id)