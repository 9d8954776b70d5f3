import numpy as np
import pytest

from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.path_planner.astar_planner import AStarPlanner
from voronoi_nav.path_planner.k_shortest_paths import DiverseKShortestPaths
from voronoi_nav.path_planner.map_model import ObstacleModel, Roadmap

START, GOAL = 0, 1


def make_roadmap(upper_y: float, lower_y: float = 9.5) -> Roadmap:
    """
    起点(0,5)、终点(10,5)，中间三条两段式通道：
    2: 上方最短通道 (5,2)；3: 上方通道 (5,upper_y)；4: 下方通道 (5,lower_y)
    """
    roadmap = Roadmap()
    for x, y in [(0, 5), (10, 5), (5, 2), (5, upper_y), (5, lower_y)]:
        roadmap.add_node(GraphNode(float(x), float(y)))
    for mid in (2, 3, 4):
        roadmap.connect(START, mid)
        roadmap.connect(mid, GOAL)
    return roadmap


def make_finder(roadmap: Roadmap, obstacles: ObstacleModel = None) -> DiverseKShortestPaths:
    if obstacles is None:
        obstacles = ObstacleModel(centroids=np.array([5 + 5j]), coefficients=np.array([2 + 0j]))
    return DiverseKShortestPaths(roadmap, AStarPlanner(roadmap), obstacles, h_class_threshold=0.2,
                                 num_workers=1)


def test_finds_path_around_other_side() -> None:
    roadmap = make_roadmap(upper_y=0.0)
    finder = make_finder(roadmap)
    shortest, _ = AStarPlanner(roadmap).ShortestPath(START, GOAL)
    assert shortest == [0, 2, 1]

    paths, all_found = finder.FindAlternates(START, GOAL, shortest, k=1)
    assert all_found
    assert paths == [[0, 2, 1], [0, 4, 1]]
    assert finder.ClassOf(paths[0]) == pytest.approx(-finder.ClassOf(paths[1]))


def test_same_class_alternates_are_rejected() -> None:
    roadmap = make_roadmap(upper_y=0.0)
    paths, all_found = make_finder(roadmap).FindAlternates(START, GOAL, [0, 2, 1], k=2)
    # 上方第二条通道与最短路径同类
    assert not all_found
    assert paths == [[0, 2, 1], [0, 4, 1]]


def test_discarded_candidate_ends_search() -> None:
    # 上方通道比下方更便宜，先被取出并丢弃，其后不再生成新的候选
    roadmap = make_roadmap(upper_y=1.0)
    paths, all_found = make_finder(roadmap).FindAlternates(START, GOAL, [0, 2, 1], k=1)
    assert not all_found
    assert paths == [[0, 2, 1]]


def test_adjacency_restored_after_search() -> None:
    roadmap = make_roadmap(upper_y=0.0)
    before = roadmap.snapshot()
    make_finder(roadmap).FindAlternates(START, GOAL, [0, 2, 1], k=3)
    assert roadmap.snapshot() == before
    assert roadmap.is_symmetric()


def test_zero_alternates_requested() -> None:
    roadmap = make_roadmap(upper_y=0.0)
    assert make_finder(roadmap).FindAlternates(START, GOAL, [0, 2, 1], k=0) == ([[0, 2, 1]], True)


def test_no_obstacles_means_single_class() -> None:
    roadmap = make_roadmap(upper_y=0.0)
    paths, all_found = make_finder(roadmap, ObstacleModel()).FindAlternates(START, GOAL, [0, 2, 1], k=1)
    assert paths == [[0, 2, 1]]
    assert not all_found
