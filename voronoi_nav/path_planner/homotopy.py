#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
同伦类计算模块

路径的同伦类用复平面线积分近似：
    H(path) = sum_edges sum_k coeff_k * (ln|b - c_k| - ln|a - c_k| + i * wrap(arg(b - c_k) - arg(a - c_k)))
其中 c_k 为障碍物质心，coeff_k 为重建时预计算的系数，wrap 把角度差归一化到 (-pi, pi]。
能连续形变而不穿越障碍物的两条路径，H 值数值上接近。
"""

from typing import Optional, Sequence

import numpy as np

from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.core.parallel import map_ranges
from voronoi_nav.path_planner.map_model import ObstacleModel

# 路径点与质心的最小距离（像素），避免 log(0)
_MIN_DISTANCE = 1e-9


def wrap_angle(theta: np.ndarray) -> np.ndarray:
    """把角度差归一化到 (-pi, pi]"""
    theta = np.where(theta > np.pi, theta - 2.0 * np.pi, theta)
    return np.where(theta <= -np.pi, theta + 2.0 * np.pi, theta)


def homotopy_class(
    points: Sequence[GraphNode],
    model: ObstacleModel,
    num_workers: Optional[int] = None,
    min_items: int = 64,
) -> complex:
    """
    计算路径的同伦类值

    边按连续区间切分并行求和，各区间部分和按区间顺序相加。

    Args:
        points: 路径点序列（像素坐标）
        model: 障碍物模型
        num_workers: 工作线程数（None = CPU 核心数）
        min_items: 边数不超过该值时串行计算

    Returns:
        复数同伦类值；无障碍物或路径少于两点时为 0
    """
    if len(points) < 2 or model.is_empty:
        return 0j

    z = np.array([p.as_complex() for p in points], dtype=complex)
    centroids = model.centroids[np.newaxis, :]
    coefficients = model.coefficients[np.newaxis, :]

    def partial(lo: int, hi: int) -> complex:
        a = z[lo:hi, np.newaxis] - centroids
        b = z[lo + 1:hi + 1, np.newaxis] - centroids
        log_ratio = np.log(np.maximum(np.abs(b), _MIN_DISTANCE)) - np.log(np.maximum(np.abs(a), _MIN_DISTANCE))
        dtheta = wrap_angle(np.angle(b) - np.angle(a))
        return complex(np.sum((log_ratio + 1j * dtheta) * coefficients))

    parts = map_ranges(partial, len(z) - 1, num_workers, min_items)
    return complex(sum(parts))


def is_distinct_class(candidate: complex, accepted: Sequence[complex], threshold: float) -> bool:
    """
    候选同伦类与所有已接受类的相对差异是否都超过阈值

    相对差异以候选值自身的模为基准：|c - h| > threshold * |c|。
    无障碍物时所有路径的值都为 0，彼此视为同一类。
    """
    magnitude = abs(candidate)
    return all(abs(candidate - h) > threshold * magnitude for h in accepted)
