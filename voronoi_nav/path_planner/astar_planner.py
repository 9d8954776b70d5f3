#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路径规划模块：在 Voronoi 路网上实现 A* 最短路径与最近可达节点查询
"""

# 标准库导入
from typing import Dict, List, Optional, Tuple
import heapq
import itertools
import math

# 第三方库导入
import numpy as np
from loguru import logger

from voronoi_nav.common.exceptions import NoRouteError
from voronoi_nav.core.collision import CollisionChecker
from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.path_planner.map_model import RawPath, Roadmap


class AStarPlanner():
    """
    路网 A* 规划器

    边代价为两节点间欧氏距离，启发式为到终点的直线距离（可采纳）。
    邻接表中的 None 表示被临时删除的边，搜索时跳过。

    示例:
        ```python
        planner = AStarPlanner(roadmap, checker)
        start = planner.NearestReachableNode(GraphNode(0, 0))
        path, cost = planner.ShortestPath(start, goal)
        ```
    """

    def __init__(self, roadmap: Roadmap, checker: Optional[CollisionChecker] = None):
        """
        初始化 A* 规划器

        Args:
            roadmap: 路网（邻接表可能被多路径搜索临时修改）
            checker: 碰撞检测器，用于最近可达节点查询
        """
        self.roadmap_ = roadmap
        self.checker_ = checker
        self.coords_ = np.array([n.as_tuple() for n in roadmap.nodes], dtype=float).reshape(-1, 2)

    def NearestReachableNode(self, point: GraphNode) -> int:
        """
        最近的可直线到达节点

        按平方距离从近到远检查，距离相同时取索引较小者。

        Args:
            point: 查询点（像素坐标）

        Returns:
            节点索引

        Raises:
            NoRouteError: 没有任何节点与查询点之间无碰撞
        """
        if self.roadmap_.num_nodes == 0:
            raise NoRouteError("路网为空")

        d2 = np.sum((self.coords_ - np.array(point.as_tuple())) ** 2, axis=1)
        order = np.argsort(d2, kind="stable")
        for idx in order:
            idx = int(idx)
            if self.checker_ is None or not self.checker_.edge_collides(point, self.roadmap_.nodes[idx]):
                return idx

        error_msg = f"没有与查询点无碰撞相连的节点: point=({point.x:.2f}, {point.y:.2f})"
        logger.warning(f"[A*] {error_msg}")
        raise NoRouteError(error_msg)

    def ShortestPath(self, start: int, goal: int) -> Tuple[RawPath, float]:
        """
        A* 算法核心实现

        Args:
            start: 起点节点索引
            goal: 终点节点索引

        Returns:
            (节点索引路径, 路径总长度)

        Raises:
            NoRouteError: 开放集耗尽或回溯中断
        """
        n = self.roadmap_.num_nodes
        if not (0 <= start < n and 0 <= goal < n):
            raise ValueError(f"节点索引越界: start={start}, goal={goal}, num_nodes={n}")

        if start == goal:
            return [start], 0.0

        adjacency = self.roadmap_.adjacency
        counter = itertools.count()
        open_set = [(self.Heuristic(start, goal), next(counter), start)]
        g_score: Dict[int, float] = {start: 0.0}
        came_from: Dict[int, int] = {}
        closed = set()

        while open_set:
            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue
            closed.add(current)

            if current == goal:
                path = self._Reconstruct(came_from, start, goal)
                cost = self.roadmap_.path_cost(path)
                logger.debug(f"[A*] 路径规划成功: 节点数={len(path)}, 代价={cost:.3f}, 探索节点数={len(closed)}")
                return path, cost

            for neighbor in adjacency[current]:
                if neighbor is None or neighbor in closed:
                    continue
                new_g = g_score[current] + self.EdgeCost(current, neighbor)
                if new_g < g_score.get(neighbor, math.inf):
                    g_score[neighbor] = new_g
                    came_from[neighbor] = current
                    heapq.heappush(open_set, (new_g + self.Heuristic(neighbor, goal), next(counter), neighbor))

        raise NoRouteError(f"无法找到从节点 {start} 到节点 {goal} 的路径, 探索节点数={len(closed)}")

    def EdgeCost(self, a: int, b: int) -> float:
        return float(math.hypot(*(self.coords_[a] - self.coords_[b])))

    def Heuristic(self, a: int, b: int) -> float:
        """
        启发式函数（欧氏距离）

        Args:
            a: 节点A索引
            b: 节点B索引

        Returns:
            欧氏距离
        """
        return self.EdgeCost(a, b)

    def _Reconstruct(self, came_from: Dict[int, int], start: int, goal: int) -> RawPath:
        path = [goal]
        node = goal
        while node != start:
            prev = came_from.get(node)
            if prev is None:
                raise NoRouteError(f"路径回溯中断: 节点 {node} 没有前驱")
            node = prev
            path.append(node)
        path.reverse()
        return path
