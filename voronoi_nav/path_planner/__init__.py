from .map_model import Roadmap, ObstacleModel, PlanResult, RawPath, SmoothedPath
from .obstacle_centroids import ObstacleCentroidExtractor
from .graph_builder import GraphBuilder
from .astar_planner import AStarPlanner
from .homotopy import homotopy_class, is_distinct_class
from .k_shortest_paths import DiverseKShortestPaths
from .bezier_smoothing import PathSmoother, bezier_curve, merge_close_points

__all__ = [
    'Roadmap',
    'ObstacleModel',
    'PlanResult',
    'RawPath',
    'SmoothedPath',
    'ObstacleCentroidExtractor',
    'GraphBuilder',
    'AStarPlanner',
    'homotopy_class',
    'is_distinct_class',
    'DiverseKShortestPaths',
    'PathSmoother',
    'bezier_curve',
    'merge_close_points',
]
