import random
from collections import deque

import pytest

from scenesim.bvh import (
    BVH,
    BVHNode,
    MAX_PRIMS_IN_NODE,
    build_bvh,
    embed_even_bits,
    morton_encode,
)
from scenesim.geometry import Box2D, LineSegment, Vec2


def _extract_even_bits(x):
    x &= 0x5555555555555555
    x = (x | (x >> 1)) & 0x3333333333333333
    x = (x | (x >> 2)) & 0x0F0F0F0F0F0F0F0F
    x = (x | (x >> 4)) & 0x00FF00FF00FF00FF
    x = (x | (x >> 8)) & 0x0000FFFF0000FFFF
    x = (x | (x >> 16)) & 0x00000000FFFFFFFF
    return x


def _grid_segments(n=20):
    return [
        LineSegment(Vec2(float(i), float(j)), Vec2(float(i + 1), float(j)))
        for j in range(n)
        for i in range(n)
    ]


def _random_segments(count, seed):
    rng = random.Random(seed)
    segments = []
    for _ in range(count):
        a = Vec2(rng.uniform(-50, 50), rng.uniform(-30, 30))
        b = a + Vec2(rng.uniform(-3, 3), rng.uniform(-3, 3))
        segments.append(LineSegment(a, b))
    return segments


def _reachable(bvh):
    seen = set()
    queue = deque([bvh.root])
    while queue:
        node_id = queue.popleft()
        seen.add(node_id)
        node = bvh.box_map[node_id]
        queue.extend(node.children or ())
    return seen


def _encloses(outer, inner, tol=1e-9):
    return (
        outer.min.x <= inner.min.x + tol
        and outer.min.y <= inner.min.y + tol
        and outer.max.x + tol >= inner.max.x
        and outer.max.y + tol >= inner.max.y
    )


def _leaves(bvh):
    return [node for node in bvh.box_map.values() if node.elements is not None]


def test_embed_even_bits_fills_even_positions():
    assert embed_even_bits(0xFFFFFFFF) == 0x5555555555555555
    assert embed_even_bits(0) == 0


@pytest.mark.parametrize("x, y", [(0, 0), (1, 0), (0, 1), (12345, 678), (0xFFFFFFFF, 0x1234ABCD)])
def test_morton_round_trip(x, y):
    code = morton_encode(x, y)
    assert _extract_even_bits(code) == x
    assert _extract_even_bits(code >> 1) == y


def test_morton_interleaves_x_first():
    assert morton_encode(1, 1) == 3
    assert morton_encode(1, 0) < morton_encode(0, 1)


def test_empty_input_gives_single_zero_node():
    bvh = build_bvh([])
    zero = Box2D(Vec2(0.0, 0.0), Vec2(0.0, 0.0))
    assert bvh == BVH(box_map={0: BVHNode(None, zero, None)}, root=0)


@pytest.mark.parametrize("segments", [_grid_segments(), _random_segments(300, 7)])
def test_every_segment_in_exactly_one_leaf(segments):
    bvh = build_bvh(segments)
    indices = sorted(i for leaf in _leaves(bvh) for i in leaf.elements)
    assert indices == list(range(len(segments)))


def test_leaves_respect_capacity_for_distinct_segments():
    bvh = build_bvh(_grid_segments())
    assert max(len(leaf.elements) for leaf in _leaves(bvh)) <= MAX_PRIMS_IN_NODE


@pytest.mark.parametrize("segments", [_grid_segments(), _random_segments(300, 11)])
def test_all_nodes_reachable_from_root(segments):
    bvh = build_bvh(segments)
    assert _reachable(bvh) == set(bvh.box_map)


@pytest.mark.parametrize("segments", [_grid_segments(), _random_segments(300, 3)])
def test_rects_enclose_contents(segments):
    bvh = build_bvh(segments)
    for node in bvh.box_map.values():
        assert node.children is None or node.elements is None
        for child in node.children or ():
            assert _encloses(node.rect, bvh.box_map[child].rect)
        for index in node.elements or ():
            assert _encloses(node.rect, segments[index].get_box())


def test_root_rect_matches_bounding_box():
    segments = _random_segments(200, 5)
    bvh = build_bvh(segments)
    bounding = segments[0].get_box()
    for seg in segments[1:]:
        bounding = bounding.encase(seg.get_box())
    root = bvh.box_map[bvh.root].rect
    assert root.min.x == pytest.approx(bounding.min.x)
    assert root.min.y == pytest.approx(bounding.min.y)
    assert root.max.x == pytest.approx(bounding.max.x)
    assert root.max.y == pytest.approx(bounding.max.y)


def test_single_segment_tree():
    segment = LineSegment(Vec2(-2.0, 1.0), Vec2(3.0, 4.0))
    bvh = build_bvh([segment])
    root = bvh.box_map[bvh.root]
    assert len(root.children) == 1
    leaf = bvh.box_map[root.children[0]]
    assert leaf.elements == (0,)
    assert root.rect.min.x == pytest.approx(-2.0)
    assert root.rect.max.y == pytest.approx(4.0)