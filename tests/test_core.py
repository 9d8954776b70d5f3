import math

import numpy as np
import pytest

from voronoi_nav.core.collision import CollisionChecker
from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.core.grid_snapshot import GridSnapshot
from voronoi_nav.core.parallel import map_ranges, split_ranges


def test_graph_node_arithmetic() -> None:
    a = GraphNode(3.0, 4.0)
    b = GraphNode(1.0, 1.0)
    assert a + b == GraphNode(4.0, 5.0)
    assert a - b == GraphNode(2.0, 3.0)
    assert a * 2.0 == GraphNode(6.0, 8.0)
    assert a.squared_magnitude() == pytest.approx(25.0)
    u = a.unit_vector()
    assert u.x == pytest.approx(0.6) and u.y == pytest.approx(0.8)
    assert GraphNode(0.0, 0.0).unit_vector() == GraphNode(0.0, 0.0)


def test_grid_snapshot_shape_and_conversion() -> None:
    cells = np.arange(12, dtype=np.uint8).reshape(3, 4)
    grid = GridSnapshot.from_array(cells, resolution=0.5, origin=(-1.0, 2.0))
    assert (grid.width, grid.height) == (4, 3)
    assert grid.value_at(3, 2) == 11
    assert not grid.data.flags.writeable

    p = grid.world_to_pixel((0.0, 3.0))
    assert (p.x, p.y) == pytest.approx((2.0, 2.0))
    assert grid.pixel_to_world(p) == pytest.approx((0.0, 3.0))

    with pytest.raises(ValueError):
        GridSnapshot(width=4, height=4, resolution=1.0, frame_id="map", data=np.zeros(3))

    assert GridSnapshot.from_array(np.zeros((0, 0))).is_empty


def test_collision_threshold_and_bounds() -> None:
    cells = np.zeros((5, 5), dtype=np.uint8)
    cells[2, 2] = 85
    cells[2, 3] = 84
    checker = CollisionChecker(GridSnapshot.from_array(cells), collision_threshold=85, line_check_resolution=0.1)

    assert checker.point_collides(2.5, 2.5)
    assert not checker.point_collides(3.5, 2.5)
    assert checker.point_collides(-0.1, 1.0)
    assert checker.point_collides(5.0, 1.0)
    assert checker.edge_collides(GraphNode(0.5, 2.5), GraphNode(4.5, 2.5))
    assert not checker.edge_collides(GraphNode(0.5, 0.5), GraphNode(4.5, 0.5))


def test_collision_check_is_order_independent() -> None:
    rng = np.random.default_rng(7)
    cells = (rng.random((20, 20)) > 0.85).astype(np.uint8) * 100
    checker = CollisionChecker(GridSnapshot.from_array(cells), collision_threshold=85, line_check_resolution=0.1)
    for _ in range(200):
        a = GraphNode(*rng.uniform(0.0, 19.99, size=2))
        b = GraphNode(*rng.uniform(0.0, 19.99, size=2))
        assert checker.edge_collides(a, b) == checker.edge_collides(b, a)


def test_split_ranges_cover_input() -> None:
    ranges = split_ranges(10, 3)
    assert ranges == [(0, 4), (4, 7), (7, 10)]
    assert split_ranges(2, 8) == [(0, 1), (1, 2)]
    assert split_ranges(0, 4) == []


def test_map_ranges_keeps_range_order() -> None:
    values = np.arange(1000)
    parts = map_ranges(lambda lo, hi: values[lo:hi].copy(), len(values), num_workers=4, min_items=10)
    assert len(parts) == 4
    assert np.array_equal(np.concatenate(parts), values)

    serial = map_ranges(lambda lo, hi: (lo, hi), 5, num_workers=4, min_items=10)
    assert serial == [(0, 5)]


def test_map_ranges_reraises_worker_errors() -> None:
    def boom(lo: int, hi: int) -> int:
        if lo > 0:
            raise MemoryError("worker")
        return hi - lo

    with pytest.raises(MemoryError):
        map_ranges(boom, 100, num_workers=2, min_items=1)


def test_unit_vector_of_diagonal() -> None:
    u = GraphNode(1.0, 1.0).unit_vector()
    assert u.x == pytest.approx(1 / math.sqrt(2))
