#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
多样化 K 最短路径模块：Yen 算法 + 同伦类过滤

在最短路径基础上寻找最多 k 条备选路径，且每条路径的同伦类与已接受路径都不同，
从而得到绕过障碍物的、本质不同的多条路线。

偏离搜索期间会就地修改路网邻接表（被删除的边记为 None），
每个偏离点搜索结束后立即按备份恢复，调用结束时邻接表与调用前完全一致。
"""

import heapq
import itertools
import time
from typing import Dict, List, Optional, Sequence, Set, Tuple

from loguru import logger

from voronoi_nav.common.exceptions import NoRouteError
from voronoi_nav.path_planner.astar_planner import AStarPlanner
from voronoi_nav.path_planner.homotopy import homotopy_class, is_distinct_class
from voronoi_nav.path_planner.map_model import ObstacleModel, RawPath, Roadmap


class DiverseKShortestPaths:
    """
    Yen 偏离路径搜索，按同伦类去重

    示例:
        ```python
        finder = DiverseKShortestPaths(roadmap, planner, obstacles, h_class_threshold=0.2)
        paths, all_found = finder.FindAlternates(start, goal, shortest, k=2)
        ```
    """

    def __init__(
        self,
        roadmap: Roadmap,
        planner: AStarPlanner,
        obstacles: ObstacleModel,
        h_class_threshold: float,
        num_workers: Optional[int] = None,
        parallel_min_items: int = 64,
        print_timings: bool = False,
    ) -> None:
        self.roadmap_ = roadmap
        self.planner_ = planner
        self.obstacles_ = obstacles
        self.h_class_threshold_ = h_class_threshold
        self.num_workers_ = num_workers
        self.parallel_min_items_ = parallel_min_items
        self.print_timings_ = print_timings

    def ClassOf(self, path: RawPath) -> complex:
        """原始路径（节点索引）的同伦类值"""
        return homotopy_class(self.roadmap_.path_points(path), self.obstacles_,
                              self.num_workers_, self.parallel_min_items_)

    def FindAlternates(self, start: int, goal: int, shortest: RawPath, k: int) -> Tuple[List[RawPath], bool]:
        """
        寻找最多 k 条同伦类互不相同的备选路径

        Args:
            start: 起点节点索引
            goal: 终点节点索引
            shortest: 最短路径
            k: 备选路径数

        Returns:
            (路径列表（首条为最短路径）, 是否找齐 k 条备选)
        """
        accepted: List[RawPath] = [list(shortest)]
        if k <= 0:
            return accepted, True

        classes: List[complex] = []
        seen: Set[Tuple[int, ...]] = {tuple(shortest)}
        pool: List[Tuple[float, int, RawPath]] = []
        counter = itertools.count()
        spur_time = 0.0
        class_time = 0.0

        while len(accepted) - 1 < k:
            last = accepted[-1]
            t0 = time.perf_counter()
            classes.append(self.ClassOf(last))
            class_time += time.perf_counter() - t0

            # 偏离点：从起点到倒数第二个节点
            t0 = time.perf_counter()
            for i in range(len(last) - 1):
                root = last[:i + 1]
                spur_path = self._SpurSearch(root, accepted, goal)
                if spur_path is None:
                    continue
                candidate = root[:-1] + spur_path
                key = tuple(candidate)
                if key in seen:
                    continue
                seen.add(key)
                heapq.heappush(pool, (self.roadmap_.path_cost(candidate), next(counter), candidate))
            spur_time += time.perf_counter() - t0

            # 按代价从小到大取第一条同伦类不同的候选，同类候选直接丢弃
            t0 = time.perf_counter()
            found = None
            while pool:
                _, _, candidate = heapq.heappop(pool)
                if is_distinct_class(self.ClassOf(candidate), classes, self.h_class_threshold_):
                    found = candidate
                    break
            class_time += time.perf_counter() - t0

            if found is None:
                break
            accepted.append(found)

        all_found = len(accepted) - 1 == k
        logger.debug(
            f"[KShortest] 备选路径搜索结束: 请求={k}, 找到={len(accepted) - 1}, "
            f"生成候选={len(seen) - 1}, all_found={all_found}"
        )
        if self.print_timings_:
            logger.info(f"[KShortest] 耗时: spur={spur_time:.4f}s, homotopy={class_time:.4f}s")
        return accepted, all_found

    def _SpurSearch(self, root: RawPath, accepted: Sequence[RawPath], goal: int) -> Optional[RawPath]:
        """
        以 root 末节点为偏离点搜索到终点的路径

        临时删除：已知路径中与 root 相同前缀的下一条边，以及 root 中除偏离点外的所有节点。
        """
        spur = root[-1]
        backup: Dict[int, List[Optional[int]]] = {}
        try:
            for path in accepted:
                if len(path) > len(root) and path[:len(root)] == root:
                    self._DisableEdge(spur, path[len(root)], backup)

            for node in root[:-1]:
                for neighbor in list(self.roadmap_.adjacency[node]):
                    if neighbor is not None:
                        self._DisableEdge(node, neighbor, backup)

            try:
                path, _ = self.planner_.ShortestPath(spur, goal)
            except NoRouteError:
                return None
            return path
        finally:
            self._Restore(backup)

    def _DisableEdge(self, i: int, j: int, backup: Dict[int, List[Optional[int]]]) -> None:
        for a, b in ((i, j), (j, i)):
            row = self.roadmap_.adjacency[a]
            if b in row:
                if a not in backup:
                    backup[a] = list(row)
                row[row.index(b)] = None

    def _Restore(self, backup: Dict[int, List[Optional[int]]]) -> None:
        for idx, row in backup.items():
            self.roadmap_.adjacency[idx][:] = row
