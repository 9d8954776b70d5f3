#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
占据栅格快照

一次重建所用的栅格数据（行优先展开，0=空闲 … 100=占据），捕获后不可修改。
同时提供世界坐标 <-> 像素坐标的转换，供外部调用方在接口边界使用。
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from voronoi_nav.core.graph_node import GraphNode


@dataclass(frozen=True, eq=False)
class GridSnapshot:
    width: int
    height: int
    resolution: float                 # 米/像素
    frame_id: str
    data: np.ndarray                  # 长度 width*height，行优先
    origin: Tuple[float, float] = field(default=(0.0, 0.0))  # 像素 (0, 0) 的世界坐标

    def __post_init__(self) -> None:
        data = np.asarray(self.data).ravel().copy()
        if data.size != self.width * self.height:
            raise ValueError(
                f"栅格数据长度与尺寸不符: len={data.size}, size=({self.width}, {self.height})"
            )
        if self.resolution <= 0:
            raise ValueError(f"resolution必须大于0: {self.resolution}")
        data.setflags(write=False)
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(
        cls,
        cells: np.ndarray,
        resolution: float = 1.0,
        frame_id: str = "map",
        origin: Tuple[float, float] = (0.0, 0.0),
    ) -> "GridSnapshot":
        """由 HxW 数组构造快照（cells[y, x]）"""
        cells = np.asarray(cells)
        if cells.ndim != 2:
            raise ValueError(f"cells必须是二维数组: ndim={cells.ndim}")
        h, w = cells.shape
        return cls(width=w, height=h, resolution=resolution, frame_id=frame_id,
                   data=cells.ravel(), origin=origin)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0 or self.data.size == 0

    @property
    def cells(self) -> np.ndarray:
        """HxW 只读视图"""
        return self.data.reshape(self.height, self.width)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def value_at(self, x: int, y: int) -> int:
        return int(self.data[y * self.width + x])

    def world_to_pixel(self, world_pos: Tuple[float, float]) -> GraphNode:
        """
        世界坐标 → 像素坐标

        Args:
            world_pos: 世界坐标 (x, y)，单位米

        Returns:
            像素坐标节点（未取整、未裁剪）
        """
        wx, wy = world_pos
        ox, oy = self.origin
        return GraphNode((wx - ox) / self.resolution, (wy - oy) / self.resolution)

    def pixel_to_world(self, node: GraphNode) -> Tuple[float, float]:
        """像素坐标 → 世界坐标"""
        ox, oy = self.origin
        return (node.x * self.resolution + ox, node.y * self.resolution + oy)
