#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
障碍物质心提取模块

从栅格快照中提取障碍物轮廓质心，并为每个质心预计算同伦类积分系数：
1. 按占据阈值二值化为 8 位图像，按比例缩小以加速
2. Canny 边缘检测 + 轮廓提取（只保留连通域外边界）
3. 由面积矩计算质心，映射回栅格像素坐标
4. 计算系数 f0(c_i) / prod_{j!=i}(c_i - c_j)，f0 为到栅格对角两点的幂次项

系数在下一次重建前保持不变，供所有同伦类计算复用。
"""

from typing import List, Tuple

import cv2
import numpy as np
from loguru import logger

from voronoi_nav.config.models import ObstacleConfig
from voronoi_nav.core.grid_snapshot import GridSnapshot
from voronoi_nav.path_planner.map_model import ObstacleModel

# 质心重合判定距离（像素）
_COINCIDENT_EPS = 1e-6


class ObstacleCentroidExtractor:
    """
    障碍物质心提取器

    示例:
        ```python
        extractor = ObstacleCentroidExtractor(ObstacleConfig(), occupancy_threshold=100)
        model = extractor.Extract(grid)
        ```
    """

    def __init__(self, cfg: ObstacleConfig, occupancy_threshold: int) -> None:
        self.cfg_ = cfg
        self.occupancy_threshold_ = occupancy_threshold

    def Extract(self, grid: GridSnapshot) -> ObstacleModel:
        """
        提取障碍物模型

        Args:
            grid: 栅格快照

        Returns:
            ObstacleModel（无障碍物时为空模型）
        """
        if grid.is_empty:
            return ObstacleModel()

        centroids = self.FindCentroids(grid)
        coefficients = ComputeCoefficients(centroids, grid.width, grid.height)
        logger.debug(f"[ObstacleCentroid] 提取障碍物质心: count={len(centroids)}")
        return ObstacleModel(
            centroids=np.asarray(centroids, dtype=complex),
            coefficients=coefficients,
        )

    def FindCentroids(self, grid: GridSnapshot) -> List[complex]:
        """
        轮廓质心（栅格像素坐标，复数 x + yj）

        Args:
            grid: 栅格快照

        Returns:
            去重后的质心列表
        """
        binary = np.where(grid.cells >= self.occupancy_threshold_, 255, 0).astype(np.uint8)

        scale = self.EffectiveScale(grid.width, grid.height)
        image = binary
        if scale != 1.0:
            new_w = max(1, int(round(grid.width * scale)))
            new_h = max(1, int(round(grid.height * scale)))
            image = cv2.resize(binary, (new_w, new_h), interpolation=cv2.INTER_AREA)
        # 实际缩放比例（取整后）
        sx = image.shape[1] / grid.width
        sy = image.shape[0] / grid.height

        edges = cv2.Canny(image, self.cfg_.canny_low, self.cfg_.canny_high,
                          apertureSize=self.cfg_.canny_aperture)
        contours, hierarchy = cv2.findContours(edges, cv2.RETR_CCOMP, cv2.CHAIN_APPROX_SIMPLE)
        if hierarchy is None or len(contours) == 0:
            return []

        img_h, img_w = image.shape[:2]
        margin = self.cfg_.border_margin
        centroids: List[complex] = []
        border_dropped = 0

        for c, (_, _, _, parent) in zip(contours, hierarchy[0]):
            # 只保留外边界，孔洞边界跳过
            if parent != -1:
                continue
            if _touches_border(cv2.boundingRect(c), img_w, img_h, margin):
                border_dropped += 1
                continue

            M = cv2.moments(c)
            if M["m00"] == 0:
                continue
            cx = M["m10"] / M["m00"]
            cy = M["m01"] / M["m00"]
            if not (np.isfinite(cx) and np.isfinite(cy)):
                continue

            # 像素中心校正后映射回原栅格
            gx = (cx + 0.5) / sx - 0.5
            gy = (cy + 0.5) / sy - 0.5
            point = complex(gx, gy)
            if any(abs(point - other) < _COINCIDENT_EPS for other in centroids):
                continue
            centroids.append(point)

        if border_dropped > 0 and not centroids:
            logger.warning(
                f"[ObstacleCentroid] 所有外轮廓均贴边被忽略: dropped={border_dropped}, "
                f"image=({img_w}, {img_h}), scale={scale:.3f}"
            )
        return centroids

    def EffectiveScale(self, width: int, height: int) -> float:
        """
        实际使用的缩放比例

        缩放后短边小于 min_scaled_size 时，窄通道会在缩小后闭合，
        障碍物与外墙连成一片而被贴边过滤掉，此时按原尺寸提取。
        """
        scale = self.cfg_.downscale_factor
        if scale < 1.0 and round(min(width, height) * scale) < self.cfg_.min_scaled_size:
            logger.debug(f"[ObstacleCentroid] 栅格过小，不缩放: size=({width}, {height}), scale={scale}")
            return 1.0
        return scale


def _touches_border(rect: Tuple[int, int, int, int], img_w: int, img_h: int, margin: int) -> bool:
    x, y, w, h = rect
    return (x <= margin or y <= margin or
            x + w - 1 >= img_w - 1 - margin or
            y + h - 1 >= img_h - 1 - margin)


def ComputeCoefficients(centroids: List[complex], width: int, height: int) -> np.ndarray:
    """
    计算每个障碍物质心的同伦积分系数

    f0(c) = (c - BL)^a + (c - TR)^b，a = b = (N - 1) / 2，
    BL 为栅格左上角 (0, 0)，TR 为对角 (w - 1, h - 1)；
    系数 = f0(c_i) / prod_{j != i}(c_i - c_j)

    Args:
        centroids: 质心列表（互不重合）
        width: 栅格宽度
        height: 栅格高度

    Returns:
        复数系数数组，长度与 centroids 相同
    """
    n = len(centroids)
    if n == 0:
        return np.zeros(0, dtype=complex)

    a = b = (n - 1) / 2.0
    bl = complex(0.0, 0.0)
    tr = complex(width - 1, height - 1)

    coefficients = np.zeros(n, dtype=complex)
    for i, ci in enumerate(centroids):
        f0 = (ci - bl) ** a + (ci - tr) ** b
        denominator = complex(1.0, 0.0)
        for j, cj in enumerate(centroids):
            if j != i:
                denominator *= (ci - cj)
        coefficients[i] = f0 / denominator
    return coefficients
