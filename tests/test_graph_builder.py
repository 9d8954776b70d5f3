import numpy as np
import pytest

from voronoi_nav.common.exceptions import RoadmapBuildError
from voronoi_nav.config.models import PlannerConfig
from voronoi_nav.core.collision import CollisionChecker
from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.core.grid_snapshot import GridSnapshot
from voronoi_nav.path_planner.graph_builder import GraphBuilder, _clip_segment
from voronoi_nav.path_planner.obstacle_centroids import ObstacleCentroidExtractor


def make_builder(cfg: PlannerConfig) -> GraphBuilder:
    extractor = ObstacleCentroidExtractor(cfg.obstacle, cfg.graph.occupancy_threshold)
    return GraphBuilder(cfg.graph, cfg.parallel, extractor)


def test_empty_grid_fails(cfg: PlannerConfig) -> None:
    builder = make_builder(cfg)
    with pytest.raises(RoadmapBuildError):
        builder.Build(GridSnapshot.from_array(np.zeros((0, 0), dtype=np.uint8)))


def test_degenerate_grid_fails(cfg: PlannerConfig) -> None:
    # 单行栅格的四角共线，无法生成 Voronoi 图
    builder = make_builder(cfg)
    with pytest.raises(RoadmapBuildError):
        builder.Build(GridSnapshot.from_array(np.zeros((1, 8), dtype=np.uint8)))


def test_free_grid_builds_connected_roadmap(cfg: PlannerConfig, free_grid: GridSnapshot) -> None:
    roadmap, obstacles = make_builder(cfg).Build(free_grid)
    assert roadmap.num_nodes >= 2
    assert roadmap.is_symmetric()
    assert obstacles.is_empty
    for node in roadmap.nodes:
        assert 0.0 <= node.x <= 9.0
        assert 0.0 <= node.y <= 9.0


def test_roadmap_is_symmetric_and_collision_free(cfg: PlannerConfig, two_gap_grid: GridSnapshot) -> None:
    roadmap, _ = make_builder(cfg).Build(two_gap_grid)
    checker = CollisionChecker(two_gap_grid, cfg.graph.collision_threshold, cfg.graph.line_check_resolution)

    assert roadmap.num_nodes > 0
    assert roadmap.is_symmetric()
    for i, j in roadmap.edges():
        assert not checker.node_collides(roadmap.nodes[i])
        assert not checker.edge_collides(roadmap.nodes[i], roadmap.nodes[j])
    for i in roadmap.disconnected_nodes():
        assert roadmap.degree(i) == 1


def test_rebuild_is_idempotent(cfg: PlannerConfig, two_gap_grid: GridSnapshot) -> None:
    builder = make_builder(cfg)
    first, _ = builder.Build(two_gap_grid)
    second, _ = builder.Build(two_gap_grid)
    assert first.num_nodes == second.num_nodes
    assert len(first.edges()) == len(second.edges())


def test_site_scan_does_not_depend_on_worker_count(two_gap_grid: GridSnapshot) -> None:
    serial_cfg = PlannerConfig()
    serial_cfg.parallel.num_workers = 1
    parallel_cfg = PlannerConfig()
    parallel_cfg.parallel.num_workers = 5
    parallel_cfg.parallel.parallel_min_items = 1

    for skip in (0, 2):
        serial_cfg.graph.pixels_to_skip = skip
        parallel_cfg.graph.pixels_to_skip = skip
        a = make_builder(serial_cfg).CollectSites(two_gap_grid)
        b = make_builder(parallel_cfg).CollectSites(two_gap_grid)
        assert np.array_equal(a, b)


def test_pixels_to_skip_subsamples_sites(cfg: PlannerConfig, two_gap_grid: GridSnapshot) -> None:
    dense = make_builder(cfg).CollectSites(two_gap_grid)
    cfg.graph.pixels_to_skip = 3
    sparse = make_builder(cfg).CollectSites(two_gap_grid)
    assert len(sparse) < len(dense)
    dense_set = {tuple(p) for p in dense}
    assert all(tuple(p) in dense_set for p in sparse)


def test_sites_include_anchors_and_corners(cfg: PlannerConfig, free_grid: GridSnapshot) -> None:
    sites = make_builder(cfg).CollectSites(free_grid, anchors=[GraphNode(3.0, 7.0), GraphNode(3.0, 7.0)])
    as_set = {tuple(p) for p in sites}
    assert (3.0, 7.0) in as_set
    assert {(0.0, 0.0), (9.0, 0.0), (0.0, 9.0), (9.0, 9.0)} <= as_set
    assert len(sites) == 5


def test_hash_merges_nearby_vertices(cfg: PlannerConfig) -> None:
    builder = make_builder(cfg)
    roadmap = builder.ToRoadmap([(1.0, 1.0, 3.0, 1.0), (3.01, 1.0, 5.0, 2.0), (5.0, 2.0, 5.0, 2.0)])
    assert roadmap.num_nodes == 3
    assert sorted(roadmap.edges()) == [(0, 1), (1, 2)]


def test_singletons_reconnect_to_close_nodes(cfg: PlannerConfig, free_grid: GridSnapshot) -> None:
    builder = make_builder(cfg)
    roadmap = builder.ToRoadmap([(1.0, 1.0, 3.0, 1.0), (3.5, 1.0, 6.0, 1.0)])
    checker = CollisionChecker(free_grid, cfg.graph.collision_threshold, cfg.graph.line_check_resolution)

    added = builder.ReconnectSingletons(roadmap, checker)
    assert added == 1
    assert roadmap.is_symmetric()
    assert set(roadmap.neighbors(1)) == {0, 2}
    assert roadmap.disconnected_nodes() == [0, 3]


def test_singleton_reconnection_respects_collisions(cfg: PlannerConfig) -> None:
    cells = np.zeros((10, 10), dtype=np.uint8)
    cells[:, 3] = 100
    grid = GridSnapshot.from_array(cells)
    builder = make_builder(cfg)
    roadmap = builder.ToRoadmap([(1.0, 1.0, 2.6, 1.0), (3.4, 1.0, 6.0, 1.0)])
    checker = CollisionChecker(grid, cfg.graph.collision_threshold, cfg.graph.line_check_resolution)
    assert builder.ReconnectSingletons(roadmap, checker) == 0


def test_clip_segment() -> None:
    assert _clip_segment(-5.0, 2.0, 5.0, 2.0, 9.0, 9.0) == pytest.approx((0.0, 2.0, 5.0, 2.0))
    assert _clip_segment(4.5, 4.5, 4.5, -40.0, 9.0, 9.0) == pytest.approx((4.5, 4.5, 4.5, 0.0))
    assert _clip_segment(-5.0, -5.0, -1.0, -1.0, 9.0, 9.0) is None
    assert _clip_segment(1.0, 1.0, 2.0, 2.0, 9.0, 9.0) == pytest.approx((1.0, 1.0, 2.0, 2.0))
