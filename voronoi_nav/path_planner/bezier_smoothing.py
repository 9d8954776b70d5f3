#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Bezier 路径平滑模块

把原始节点序列分段拟合为 Bezier 曲线：
- 从段首点到新节点的直线无碰撞、且段内控制点数未达上限时，继续扩展当前段
- 否则用当前段拟合 Bezier 曲线并采样，从触发断开的前一节点开始新段
- 新段（非路径起点）额外加入一个沿上一段出口方向外推的点，保证衔接处切线连续
- 原始路径中相邻节点之间出现碰撞说明路网已过期，直接报错
"""

import math
from typing import List, Sequence

import numpy as np
from loguru import logger

from voronoi_nav.common.exceptions import StaleRoadmapError
from voronoi_nav.config.models import SmoothingConfig
from voronoi_nav.core.collision import CollisionChecker
from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.path_planner.map_model import SmoothedPath


def bezier_curve(points: Sequence[GraphNode], samples: int = 21) -> List[GraphNode]:
    """
    Bernstein 多项式 Bezier 曲线采样

    Args:
        points: 控制点
        samples: 采样点数，t = i / (samples - 1)

    Returns:
        采样点；单个控制点时原样返回
    """
    n = len(points)
    if n == 0:
        return []
    if n == 1:
        return [points[0]]

    degree = n - 1
    t = np.linspace(0.0, 1.0, samples)[:, np.newaxis]
    i = np.arange(n)[np.newaxis, :]
    binomial = np.array([math.comb(degree, k) for k in range(n)], dtype=float)[np.newaxis, :]
    basis = binomial * t ** i * (1.0 - t) ** (degree - i)

    control = np.array([p.as_tuple() for p in points], dtype=float)
    curve = basis @ control
    return [GraphNode(float(x), float(y)) for x, y in curve]


def merge_close_points(points: Sequence[GraphNode], min_sep_sq: float) -> List[GraphNode]:
    """
    去掉与上一保留点距离过近的中间点，首尾点始终保留

    Args:
        points: 控制点
        min_sep_sq: 最小间距平方（像素²）
    """
    if len(points) <= 2:
        return list(points)

    kept = [points[0]]
    for p in points[1:-1]:
        if (p - kept[-1]).squared_magnitude() >= min_sep_sq:
            kept.append(p)
    kept.append(points[-1])
    return kept


class PathSmoother:
    """
    分段 Bezier 平滑器

    米制参数按栅格分辨率换算为像素：距离 / resolution，面积 / resolution²。
    """

    def __init__(self, checker: CollisionChecker, cfg: SmoothingConfig, resolution: float) -> None:
        if resolution <= 0:
            raise ValueError(f"resolution必须大于0: {resolution}")
        self.checker_ = checker
        self.max_control_points_ = cfg.bezier_max_control_points
        self.samples_ = cfg.bezier_samples
        self.min_sep_sq_ = cfg.min_node_sep_sq / (resolution * resolution)
        self.extra_distance_ = cfg.extra_point_distance / resolution

    def Smooth(self, points: Sequence[GraphNode]) -> SmoothedPath:
        """
        平滑一条原始路径（含查询起终点）

        Args:
            points: 原始路径点

        Returns:
            平滑后的采样点

        Raises:
            StaleRoadmapError: 相邻原始节点之间存在碰撞
        """
        if len(points) <= 1:
            return list(points)

        result: SmoothedPath = []
        run: List[GraphNode] = []
        exit_pair: List[GraphNode] = []
        segments = 0

        i = 1
        while i < len(points):
            if not run:
                run.append(points[i - 1])
                if i > 1 and len(exit_pair) == 2:
                    direction = (exit_pair[1] - exit_pair[0]).unit_vector()
                    extra = exit_pair[1] + direction * self.extra_distance_
                    if not self.checker_.edge_collides(run[0], extra):
                        run.append(extra)
                    exit_pair = []

            if self.checker_.edge_collides(points[i - 1], points[i]):
                p, q = points[i - 1], points[i]
                raise StaleRoadmapError(
                    f"相邻路径节点发生碰撞: ({p.x:.2f}, {p.y:.2f}) -> ({q.x:.2f}, {q.y:.2f})"
                )

            if len(run) < self.max_control_points_ and not self.checker_.edge_collides(run[0], points[i]):
                run.append(points[i])
                i += 1
                continue

            # 断开：拟合当前段，不前进 i，由 points[i - 1] 开始新段
            result.extend(self.FitSegment(run))
            segments += 1
            if len(run) > 1:
                exit_pair = run[-2:]
            run = []

        if run:
            result.extend(self.FitSegment(run))
            segments += 1

        logger.debug(f"[Bezier] 平滑完成: 原始点={len(points)}, 分段={segments}, 采样点={len(result)}")
        return result

    def FitSegment(self, run: Sequence[GraphNode]) -> List[GraphNode]:
        return bezier_curve(merge_close_points(run, self.min_sep_sq_), self.samples_)
