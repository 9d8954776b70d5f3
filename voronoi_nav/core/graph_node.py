#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路网节点：栅格像素坐标系下的二维点
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class GraphNode:
    """栅格像素坐标 (x, y)，x 向右，y 为行号方向"""
    x: float
    y: float

    def __add__(self, other: "GraphNode") -> "GraphNode":
        return GraphNode(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "GraphNode") -> "GraphNode":
        return GraphNode(self.x - other.x, self.y - other.y)

    def __mul__(self, scale: float) -> "GraphNode":
        return GraphNode(self.x * scale, self.y * scale)

    __rmul__ = __mul__

    def squared_magnitude(self) -> float:
        return self.x * self.x + self.y * self.y

    def unit_vector(self) -> "GraphNode":
        """单位向量；零向量原样返回"""
        norm = math.sqrt(self.squared_magnitude())
        if norm == 0.0:
            return GraphNode(0.0, 0.0)
        return GraphNode(self.x / norm, self.y / norm)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def as_complex(self) -> complex:
        return complex(self.x, self.y)
