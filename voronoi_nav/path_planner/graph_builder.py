#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
路网构建模块：占据栅格 → Voronoi 路网

流程：
1. 并行扫描占据格子作为 Voronoi 生成点（附加调用方锚点与栅格四角）
2. scipy 生成 Voronoi 图，无限边沿法向外延并裁剪到栅格矩形
3. 剔除端点或线段经过碰撞格子的边
4. 顶点按取整哈希合并为节点，建立双向邻接表
5. 度为 1 的节点与近距离节点补连
6. 重新提取障碍物模型
"""

import math
import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger
from scipy.spatial import QhullError, Voronoi

from voronoi_nav.common.exceptions import RoadmapBuildError
from voronoi_nav.config.models import GraphConfig, ParallelConfig
from voronoi_nav.core.collision import CollisionChecker
from voronoi_nav.core.graph_node import GraphNode
from voronoi_nav.core.grid_snapshot import GridSnapshot
from voronoi_nav.core.parallel import map_ranges
from voronoi_nav.path_planner.map_model import ObstacleModel, Roadmap
from voronoi_nav.path_planner.obstacle_centroids import ObstacleCentroidExtractor

Segment = Tuple[float, float, float, float]  # (x1, y1, x2, y2)


class GraphBuilder:
    """
    Voronoi 路网构建器

    示例:
        ```python
        builder = GraphBuilder(GraphConfig(), ParallelConfig(), extractor)
        roadmap, obstacles = builder.Build(grid, anchors=[])
        ```
    """

    def __init__(
        self,
        cfg: GraphConfig,
        parallel_cfg: ParallelConfig,
        extractor: ObstacleCentroidExtractor,
        print_timings: bool = False,
    ) -> None:
        self.cfg_ = cfg
        self.parallel_cfg_ = parallel_cfg
        self.extractor_ = extractor
        self.print_timings_ = print_timings

    def Build(self, grid: GridSnapshot, anchors: Sequence[GraphNode] = ()) -> Tuple[Roadmap, ObstacleModel]:
        """
        由栅格构建路网与障碍物模型

        Args:
            grid: 栅格快照
            anchors: 额外的 Voronoi 生成点（如传感器窗口四角）

        Returns:
            (Roadmap, ObstacleModel)

        Raises:
            RoadmapBuildError: 栅格为空、Voronoi 生成失败或工作线程内存不足
        """
        if grid.is_empty:
            raise RoadmapBuildError("栅格为空，无法构建路网")

        checker = CollisionChecker(grid, self.cfg_.collision_threshold, self.cfg_.line_check_resolution)
        timings: Dict[str, float] = {}

        t0 = time.perf_counter()
        sites = self.CollectSites(grid, anchors)
        timings["collect_sites"] = time.perf_counter() - t0

        t0 = time.perf_counter()
        segments = self.VoronoiSegments(sites, grid.width, grid.height)
        timings["voronoi"] = time.perf_counter() - t0

        t0 = time.perf_counter()
        kept = [s for s in segments if not self._SegmentBlocked(checker, s)]
        timings["prune"] = time.perf_counter() - t0

        t0 = time.perf_counter()
        roadmap = self.ToRoadmap(kept)
        reconnected = self.ReconnectSingletons(roadmap, checker)
        timings["graph"] = time.perf_counter() - t0

        t0 = time.perf_counter()
        obstacles = self.extractor_.Extract(grid)
        timings["obstacles"] = time.perf_counter() - t0

        logger.info(
            f"[GraphBuilder] 路网构建完成: sites={len(sites)}, voronoi_edges={len(segments)}, "
            f"kept_edges={len(kept)}, nodes={roadmap.num_nodes}, reconnected={reconnected}, "
            f"obstacles={len(obstacles.centroids)}"
        )
        if self.print_timings_:
            logger.info("[GraphBuilder] 耗时: " + ", ".join(f"{k}={v:.4f}s" for k, v in timings.items()))

        return roadmap, obstacles

    # ------------------------------------------------------------------
    # 1) 生成点
    # ------------------------------------------------------------------
    def CollectSites(self, grid: GridSnapshot, anchors: Sequence[GraphNode] = ()) -> np.ndarray:
        """
        并行扫描占据格子，返回去重后的生成点 (N, 2)

        步长按全局索引计算（index % (pixels_to_skip + 1) == 0），与分块方式无关。
        """
        values = grid.data
        stride = self.cfg_.pixels_to_skip + 1
        threshold = self.cfg_.occupancy_threshold

        def scan(lo: int, hi: int) -> np.ndarray:
            first = lo + (-lo) % stride
            idx = np.arange(first, hi, stride, dtype=np.int64)
            return idx[values[idx] >= threshold]

        try:
            parts = map_ranges(scan, values.size, self.parallel_cfg_.num_workers,
                               self.parallel_cfg_.parallel_min_items)
        except MemoryError as e:
            raise RoadmapBuildError(f"占据格子扫描内存不足: {e}") from e

        occupied = np.concatenate(parts) if parts else np.zeros(0, dtype=np.int64)
        w, h = grid.width, grid.height
        points = [np.column_stack((occupied % w, occupied // w)).astype(float)]

        corners = np.array([[0, 0], [w - 1, 0], [0, h - 1], [w - 1, h - 1]], dtype=float)
        points.append(corners)
        if len(anchors) > 0:
            points.append(np.array([a.as_tuple() for a in anchors], dtype=float))

        sites = np.unique(np.vstack(points), axis=0)
        logger.debug(f"[GraphBuilder] 占据格子={len(occupied)}, 锚点={len(anchors)}, 生成点={len(sites)}")
        return sites

    # ------------------------------------------------------------------
    # 2) Voronoi 边
    # ------------------------------------------------------------------
    def VoronoiSegments(self, sites: np.ndarray, width: int, height: int) -> List[Segment]:
        """
        计算 Voronoi 边并裁剪到 [0, w-1] x [0, h-1]

        Raises:
            RoadmapBuildError: 生成点退化（少于3个或全部共线）
        """
        try:
            vor = Voronoi(sites)
        except (QhullError, ValueError) as e:
            raise RoadmapBuildError(f"Voronoi 图生成失败: {e}") from e

        xmax, ymax = float(width - 1), float(height - 1)
        center = sites.mean(axis=0)
        far = 2.0 * max(width, height) + float(np.ptp(sites, axis=0).max())

        segments: List[Segment] = []
        for (p1, p2), ridge in zip(vor.ridge_points, vor.ridge_vertices):
            v1, v2 = ridge
            if v1 >= 0 and v2 >= 0:
                a = vor.vertices[v1]
                b = vor.vertices[v2]
            else:
                # 无限边：从有限顶点沿远离生成点中心的法向延伸
                finite = v1 if v1 >= 0 else v2
                tangent = sites[p2] - sites[p1]
                tangent = tangent / np.linalg.norm(tangent)
                normal = np.array([-tangent[1], tangent[0]])
                midpoint = sites[[p1, p2]].mean(axis=0)
                direction = np.sign(np.dot(midpoint - center, normal)) * normal
                if not direction.any():
                    continue
                a = vor.vertices[finite]
                b = a + direction * far

            clipped = _clip_segment(a[0], a[1], b[0], b[1], xmax, ymax)
            if clipped is not None:
                segments.append(clipped)
        return segments

    def _SegmentBlocked(self, checker: CollisionChecker, s: Segment) -> bool:
        x1, y1, x2, y2 = s
        if checker.point_collides(x1, y1) or checker.point_collides(x2, y2):
            return True
        return checker.segment_collides((x1, y1), (x2, y2))

    # ------------------------------------------------------------------
    # 3) 哈希建图
    # ------------------------------------------------------------------
    def HashKey(self, x: float, y: float) -> Tuple[int, int]:
        """顶点哈希：按 hash_resolution 四舍五入（Python round，逢半取偶）"""
        r = self.cfg_.hash_resolution
        return (int(round(x / r)), int(round(y / r)))

    def ToRoadmap(self, segments: Sequence[Segment]) -> Roadmap:
        roadmap = Roadmap()
        index_of: Dict[Tuple[int, int], int] = {}

        def lookup(x: float, y: float) -> int:
            key = self.HashKey(x, y)
            idx = index_of.get(key)
            if idx is None:
                idx = roadmap.add_node(GraphNode(float(x), float(y)))
                index_of[key] = idx
            return idx

        for x1, y1, x2, y2 in segments:
            i = lookup(x1, y1)
            j = lookup(x2, y2)
            roadmap.connect(i, j)

        # 只由自环组成的节点没有边，不保留
        if any(len(row) == 0 for row in roadmap.adjacency):
            roadmap = _drop_isolated(roadmap)
        return roadmap

    # ------------------------------------------------------------------
    # 4) 孤立节点补连
    # ------------------------------------------------------------------
    def ReconnectSingletons(self, roadmap: Roadmap, checker: CollisionChecker) -> int:
        """
        度为 1 的节点与阈值距离内的其它节点补连

        Returns:
            新增的边数
        """
        if roadmap.num_nodes == 0:
            return 0

        coords = np.array([n.as_tuple() for n in roadmap.nodes], dtype=float)
        limit_sq = self.cfg_.node_connection_threshold_pix ** 2
        singletons = roadmap.disconnected_nodes()

        added = 0
        for i in singletons:
            d2 = np.sum((coords - coords[i]) ** 2, axis=1)
            for j in np.flatnonzero(d2 <= limit_sq):
                j = int(j)
                if j == i or j in roadmap.adjacency[i]:
                    continue
                if checker.edge_collides(roadmap.nodes[i], roadmap.nodes[j]):
                    continue
                if roadmap.connect(i, j):
                    added += 1
        return added


def _drop_isolated(roadmap: Roadmap) -> Roadmap:
    keep = [i for i, row in enumerate(roadmap.adjacency) if len(row) > 0]
    remap = {old: new for new, old in enumerate(keep)}
    compact = Roadmap()
    for old in keep:
        compact.add_node(roadmap.nodes[old])
    for old in keep:
        compact.adjacency[remap[old]] = [remap[j] for j in roadmap.adjacency[old]]
    return compact


def _clip_segment(
    x1: float, y1: float, x2: float, y2: float, xmax: float, ymax: float
) -> Optional[Segment]:
    """
    Liang-Barsky 线段裁剪到 [0, xmax] x [0, ymax]

    Returns:
        裁剪后的线段，完全在矩形外时返回 None
    """
    dx = x2 - x1
    dy = y2 - y1
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, x1), (dx, xmax - x1), (-dy, y1), (dy, ymax - y1)):
        if p == 0:
            if q < 0:
                return None
            continue
        r = q / p
        if p < 0:
            if r > t1:
                return None
            t0 = max(t0, r)
        else:
            if r < t0:
                return None
            t1 = min(t1, r)

    cx1 = min(max(x1 + t0 * dx, 0.0), xmax)
    cy1 = min(max(y1 + t0 * dy, 0.0), ymax)
    cx2 = min(max(x1 + t1 * dx, 0.0), xmax)
    cy2 = min(max(y1 + t1 * dy, 0.0), ymax)
    if math.isclose(cx1, cx2, abs_tol=1e-9) and math.isclose(cy1, cy2, abs_tol=1e-9):
        return None
    return (float(cx1), float(cy1), float(cx2), float(cy2))
