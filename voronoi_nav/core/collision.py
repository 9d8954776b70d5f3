#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
碰撞检测模块：点/线段与占据栅格的碰撞判断

- 点落在 >= collision_threshold 的格子内视为碰撞
- 线段按固定亚像素间隔采样，任一采样点碰撞即视为碰撞
- 超出栅格范围的点视为碰撞
- 线段端点先按字典序排序，保证 edge_collides(a, b) == edge_collides(b, a)
"""

import math
from typing import Tuple

import numpy as np

from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.core.grid_snapshot import GridSnapshot


class CollisionChecker:
    """
    基于一次栅格快照的碰撞检测器

    Args:
        grid: 栅格快照
        collision_threshold: 碰撞阈值
        line_check_resolution: 线段采样间隔（像素）

    Example:
        >>> checker = CollisionChecker(grid, collision_threshold=85, line_check_resolution=0.1)
        >>> checker.edge_collides(GraphNode(0, 0), GraphNode(9, 9))
    """

    def __init__(self, grid: GridSnapshot, collision_threshold: int, line_check_resolution: float) -> None:
        if line_check_resolution <= 0:
            raise ValueError(f"line_check_resolution必须大于0: {line_check_resolution}")
        self.grid = grid
        self.collision_threshold = collision_threshold
        self.line_check_resolution = line_check_resolution

    def point_collides(self, x: float, y: float) -> bool:
        """单点碰撞检测（像素坐标向下取整定位格子）"""
        xi = int(math.floor(x))
        yi = int(math.floor(y))
        if not self.grid.in_bounds(xi, yi):
            return True
        return self.grid.value_at(xi, yi) >= self.collision_threshold

    def node_collides(self, node: GraphNode) -> bool:
        return self.point_collides(node.x, node.y)

    def segment_collides(self, a: Tuple[float, float], b: Tuple[float, float]) -> bool:
        """
        线段碰撞检测

        Args:
            a: 端点 (x, y)
            b: 端点 (x, y)

        Returns:
            True: 线段上存在碰撞采样点
        """
        (ax, ay), (bx, by) = sorted((tuple(a), tuple(b)))
        length = math.hypot(bx - ax, by - ay)
        steps = max(1, int(math.ceil(length / self.line_check_resolution)))
        t = np.linspace(0.0, 1.0, steps + 1)

        xs = np.floor(ax + t * (bx - ax)).astype(np.int64)
        ys = np.floor(ay + t * (by - ay)).astype(np.int64)

        w, h = self.grid.width, self.grid.height
        outside = (xs < 0) | (xs >= w) | (ys < 0) | (ys >= h)
        if outside.any():
            return True

        values = self.grid.data[ys * w + xs]
        return bool((values >= self.collision_threshold).any())

    def edge_collides(self, p1: GraphNode, p2: GraphNode) -> bool:
        return self.segment_collides(p1.as_tuple(), p2.as_tuple())
