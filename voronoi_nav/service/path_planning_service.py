#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PlanningEngine

对外门面：
- 持有路网、障碍物模型和“重建中 / 查询中”两个状态标志
- map_to_graph：由栅格快照重建 Voronoi 路网
- get_path：查询最多 k+1 条同伦类互不相同的平滑路径

并发约定：
- 查询会等待正在进行的重建结束（条件变量，不忙等）
- 查询进行中调用 map_to_graph 立即返回 False，不阻塞定时重建
- 多个查询并发调用时排队依次执行
"""

import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from voronoi_nav.common.exceptions import NoRouteError, RoadmapBuildError, StaleRoadmapError
from voronoi_nav.config.loader import load_config
from voronoi_nav.config.models import PlannerConfig
from voronoi_nav.core.collision import CollisionChecker
from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.core.grid_snapshot import GridSnapshot
from voronoi_nav.path_planner.astar_planner import AStarPlanner
from voronoi_nav.path_planner.bezier_smoothing import PathSmoother
from voronoi_nav.path_planner.graph_builder import GraphBuilder
from voronoi_nav.path_planner.k_shortest_paths import DiverseKShortestPaths
from voronoi_nav.path_planner.map_model import (
    AdjacencyList,
    ObstacleModel,
    PlanResult,
    Roadmap,
    SmoothedPath,
)
from voronoi_nav.path_planner.obstacle_centroids import ObstacleCentroidExtractor
from voronoi_nav.utils.logger import SetupLogger


class PlanningEngine:
    """
    Voronoi 多路径规划引擎

    生命周期大致是：

    1. 创建实例：engine = PlanningEngine(cfg)
    2. 栅格更新时（由外部定时器驱动）调用：engine.map_to_graph(grid)
    3. 需要路线时调用：engine.get_path(start, goal, k)
       拿到最多 k+1 条平滑路径（像素坐标）
    """

    def __init__(self, cfg: Optional[PlannerConfig] = None) -> None:
        self.cfg = cfg if cfg is not None else PlannerConfig()

        self._cond = threading.Condition()
        self._updating_voronoi = False
        self._is_planning = False

        self._roadmap = Roadmap()
        self._obstacles = ObstacleModel()
        self._grid: Optional[GridSnapshot] = None          # 构建当前路网所用的栅格
        self._live_grid: Optional[GridSnapshot] = None     # 查询时碰撞检测所用的最新栅格
        self._local_vertices: List[GraphNode] = []

        self._builder = GraphBuilder(
            self.cfg.graph,
            self.cfg.parallel,
            ObstacleCentroidExtractor(self.cfg.obstacle, self.cfg.graph.occupancy_threshold),
            print_timings=self.cfg.log.print_timings,
        )

        self.last_result: Optional[PlanResult] = None

    # ------------------------------------------------------------------
    # 状态
    # ------------------------------------------------------------------
    def is_updating_voronoi(self) -> bool:
        with self._cond:
            return self._updating_voronoi

    def is_planning(self) -> bool:
        with self._cond:
            return self._is_planning

    @property
    def roadmap(self) -> Roadmap:
        return self._roadmap

    @property
    def obstacle_model(self) -> ObstacleModel:
        return self._obstacles

    # ------------------------------------------------------------------
    # 路网重建
    # ------------------------------------------------------------------
    def set_local_vertices(self, points: Sequence[GraphNode]) -> None:
        """登记额外的 Voronoi 生成点，下一次重建时生效"""
        with self._cond:
            self._local_vertices = list(points)

    def update_live_grid(self, grid: GridSnapshot) -> bool:
        """
        只更新查询时碰撞检测用的栅格，不重建路网

        路网与新栅格不一致时，查询会因相邻节点碰撞而返回空结果，提示需要重建。

        Returns:
            bool: 尺寸与当前路网栅格不一致时返回 False
        """
        with self._cond:
            base = self._grid
            if base is not None and (grid.width, grid.height) != (base.width, base.height):
                logger.warning(
                    f"[PlanningEngine] 栅格尺寸不一致: live=({grid.width}, {grid.height}), "
                    f"roadmap=({base.width}, {base.height})"
                )
                return False
            self._live_grid = grid
            return True

    def map_to_graph(self, grid: GridSnapshot) -> bool:
        """
        由栅格快照重建路网

        Args:
            grid: 栅格快照

        Returns:
            bool: 是否重建成功；失败时保留上一次的路网
        """
        with self._cond:
            if self._is_planning:
                logger.warning("[PlanningEngine] 查询进行中，拒绝本次路网重建")
                return False
            if self._updating_voronoi:
                logger.warning("[PlanningEngine] 已有重建进行中，拒绝本次路网重建")
                return False
            self._updating_voronoi = True
            anchors = list(self._local_vertices)

        start_time = time.perf_counter()
        try:
            roadmap, obstacles = self._builder.Build(grid, anchors)
        except RoadmapBuildError as e:
            logger.error(f"[PlanningEngine] 路网重建失败: {e}")
            return False
        except Exception as e:
            logger.exception(f"[PlanningEngine] 路网重建异常: {e}")
            return False
        else:
            with self._cond:
                self._roadmap = roadmap
                self._obstacles = obstacles
                self._grid = grid
                self._live_grid = grid
            if self.cfg.log.print_timings:
                logger.info(f"[PlanningEngine] 路网重建耗时: {time.perf_counter() - start_time:.4f}s")
            return True
        finally:
            with self._cond:
                self._updating_voronoi = False
                self._cond.notify_all()

    # ------------------------------------------------------------------
    # 路径查询主接口
    # ------------------------------------------------------------------
    def get_path(self, start: GraphNode, end: GraphNode, k: Optional[int] = None) -> List[SmoothedPath]:
        """
        查询最多 k+1 条同伦类互不相同的平滑路径

        Args:
            start: 起点（像素坐标）
            end: 终点（像素坐标）
            k: 备选路径数，None 时取 search.num_paths - 1

        Returns:
            平滑路径列表；无法规划时为空列表
        """
        result = self.plan(start, end, k)
        return result.paths if result.ok else []

    def plan(self, start: GraphNode, end: GraphNode, k: Optional[int] = None) -> PlanResult:
        """与 get_path 相同，但返回包含原始路径、all_found 标志和失败原因的 PlanResult"""
        if k is None:
            k = self.cfg.search.num_paths - 1
        k = max(0, int(k))

        with self._cond:
            while self._updating_voronoi or self._is_planning:
                self._cond.wait()
            self._is_planning = True
            roadmap, obstacles, grid = self._roadmap, self._obstacles, self._live_grid

        try:
            result = self._Plan(roadmap, obstacles, grid, start, end, k)
        finally:
            with self._cond:
                self._is_planning = False
                self._cond.notify_all()

        self.last_result = result
        return result

    def _Plan(
        self,
        roadmap: Roadmap,
        obstacles: ObstacleModel,
        grid: Optional[GridSnapshot],
        start: GraphNode,
        end: GraphNode,
        k: int,
    ) -> PlanResult:
        if grid is None or roadmap.num_nodes == 0:
            logger.error("[PlanningEngine] 路网未初始化，请先调用 map_to_graph()")
            return PlanResult(ok=False, reason="路网未初始化")

        timings = {}
        graph_cfg = self.cfg.graph
        checker = CollisionChecker(grid, graph_cfg.collision_threshold, graph_cfg.line_check_resolution)
        planner = AStarPlanner(roadmap, checker)

        # ----------------------------------------------------------
        # 1) 最近可达节点 + 最短路径
        # ----------------------------------------------------------
        t0 = time.perf_counter()
        try:
            start_node = planner.NearestReachableNode(start)
            end_node = planner.NearestReachableNode(end)
            shortest, cost = planner.ShortestPath(start_node, end_node)
        except NoRouteError as e:
            logger.warning(f"[PlanningEngine] 当前不可达: {e}")
            return PlanResult(ok=False, reason=str(e))
        timings["shortest"] = time.perf_counter() - t0
        logger.info(f"[PlanningEngine] 最短路径: 节点数={len(shortest)}, 代价={cost:.3f}")

        # ----------------------------------------------------------
        # 2) 同伦类不同的备选路径
        # ----------------------------------------------------------
        t0 = time.perf_counter()
        finder = DiverseKShortestPaths(
            roadmap,
            planner,
            obstacles,
            self.cfg.search.h_class_threshold,
            num_workers=self.cfg.parallel.num_workers,
            parallel_min_items=self.cfg.parallel.parallel_min_items,
            print_timings=self.cfg.log.print_timings,
        )
        node_paths, all_found = finder.FindAlternates(start_node, end_node, shortest, k)
        timings["alternates"] = time.perf_counter() - t0
        if not all_found:
            logger.info(f"[PlanningEngine] 仅找到 {len(node_paths) - 1}/{k} 条备选路径")

        raw_paths = [[start] + roadmap.path_points(p) + [end] for p in node_paths]

        # ----------------------------------------------------------
        # 3) Bezier 平滑
        # ----------------------------------------------------------
        t0 = time.perf_counter()
        smoother = PathSmoother(checker, self.cfg.smoothing, grid.resolution)
        try:
            smoothed = [smoother.Smooth(p) for p in raw_paths]
        except StaleRoadmapError as e:
            logger.warning(f"[PlanningEngine] 路网已过期，等待下一次重建: {e}")
            return PlanResult(ok=False, raw_paths=raw_paths, all_found=all_found, reason=str(e))
        timings["smoothing"] = time.perf_counter() - t0

        if self.cfg.log.print_timings:
            logger.info("[PlanningEngine] 耗时: " + ", ".join(f"{k_}={v:.4f}s" for k_, v in timings.items()))

        return PlanResult(ok=True, paths=smoothed, raw_paths=raw_paths, all_found=all_found,
                          reason="ok", timings=timings)

    # ------------------------------------------------------------------
    # 调试 / 可视化
    # 查询期间邻接表会被临时修改，以下接口等待查询结束后再读取
    # ------------------------------------------------------------------
    def _WaitIdle(self) -> None:
        while self._is_planning:
            self._cond.wait()

    def get_adj_list(self) -> AdjacencyList:
        with self._cond:
            self._WaitIdle()
            return self._roadmap.snapshot()

    def get_edges(self) -> List[Tuple[GraphNode, GraphNode]]:
        with self._cond:
            self._WaitIdle()
            roadmap = self._roadmap
            return [(roadmap.nodes[i], roadmap.nodes[j]) for i, j in roadmap.edges()]

    def get_disconnected_nodes(self) -> List[GraphNode]:
        with self._cond:
            self._WaitIdle()
            roadmap = self._roadmap
            return [roadmap.nodes[i] for i in roadmap.disconnected_nodes()]

    def get_num_nodes(self) -> int:
        with self._cond:
            self._WaitIdle()
            return self._roadmap.num_nodes

    def print_edges(self) -> None:
        for a, b in self.get_edges():
            logger.info(f"[PlanningEngine] edge: ({a.x:.2f}, {a.y:.2f}) -> ({b.x:.2f}, {b.y:.2f})")


def create_engine(config_path: Optional[Union[str, Path]] = None) -> PlanningEngine:
    """
    由 YAML 配置创建引擎，并按 log 配置初始化日志

    Args:
        config_path: 配置文件路径，None 时使用默认配置
    """
    cfg = load_config(config_path) if config_path is not None else PlannerConfig()
    SetupLogger(log_dir=cfg.log.log_dir, level=cfg.log.level)
    return PlanningEngine(cfg)


if __name__ == "__main__":
    # 简单自测：中间一道墙开两个门，期望得到分别穿过两个门的两条路线
    import numpy as np

    SetupLogger(log_dir=None, level="INFO")

    h, w = 31, 41
    cells = np.zeros((h, w), dtype=np.uint8)
    cells[0, :] = cells[-1, :] = 100
    cells[:, 0] = cells[:, -1] = 100
    cells[:, 19:22] = 100
    cells[6:10, 19:22] = 0
    cells[21:25, 19:22] = 0

    cfg = PlannerConfig()
    cfg.obstacle.downscale_factor = 1.0
    engine = PlanningEngine(cfg)
    grid = GridSnapshot.from_array(cells, resolution=1.0)
    if not engine.map_to_graph(grid):
        raise SystemExit("路网构建失败")

    start, goal = GraphNode(5.0, 15.0), GraphNode(35.0, 15.0)
    paths = engine.get_path(start, goal, k=1)
    print(f"路径数: {len(paths)}, all_found: {engine.last_result.all_found}")

    # ASCII 可视化： '#' = 障碍, '.' = 空地, 数字 = 第几条路径, 'S'/'G' = 起终点
    vis = np.where(cells >= 85, '#', '.').astype('<U1')
    for idx, path in enumerate(paths):
        for p in path:
            x, y = int(round(p.x)), int(round(p.y))
            if 0 <= x < w and 0 <= y < h and vis[y, x] == '.':
                vis[y, x] = str(idx)
    vis[int(start.y), int(start.x)] = 'S'
    vis[int(goal.y), int(goal.x)] = 'G'
    for row in vis:
        print("".join(row))
