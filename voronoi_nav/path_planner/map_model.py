from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from voronoi_nav.core.graph_node import GraphNode

RawPath = List[int]                      # 路网节点索引序列
SmoothedPath = List[GraphNode]           # 平滑后的采样点序列
AdjacencyList = List[List[Optional[int]]]  # None = 临时删除的边


@dataclass
class Roadmap:
    adjacency: AdjacencyList = field(default_factory=list)
    nodes: List[GraphNode] = field(default_factory=list)

    @property
    def num_nodes(self) -> int:
        return len(self.nodes)

    def add_node(self, node: GraphNode) -> int:
        self.nodes.append(node)
        self.adjacency.append([])
        return len(self.nodes) - 1

    def connect(self, i: int, j: int) -> bool:
        """双向连接 i、j；自环或重复边返回 False"""
        if i == j or j in self.adjacency[i]:
            return False
        self.adjacency[i].append(j)
        self.adjacency[j].append(i)
        return True

    def neighbors(self, i: int) -> List[int]:
        return [j for j in self.adjacency[i] if j is not None]

    def degree(self, i: int) -> int:
        return len(self.neighbors(i))

    def edges(self) -> List[Tuple[int, int]]:
        """每条无向边只出现一次 (i < j)"""
        return [(i, j) for i, row in enumerate(self.adjacency) for j in row if j is not None and i < j]

    def disconnected_nodes(self) -> List[int]:
        """度为 1 的节点"""
        return [i for i in range(self.num_nodes) if self.degree(i) == 1]

    def snapshot(self) -> AdjacencyList:
        return [list(row) for row in self.adjacency]

    def is_symmetric(self) -> bool:
        for i, row in enumerate(self.adjacency):
            for j in row:
                if j is not None and i not in self.adjacency[j]:
                    return False
        return True

    def edge_length(self, i: int, j: int) -> float:
        d = self.nodes[i] - self.nodes[j]
        return float(np.sqrt(d.squared_magnitude()))

    def path_cost(self, path: RawPath) -> float:
        return float(sum(self.edge_length(a, b) for a, b in zip(path[:-1], path[1:])))

    def path_points(self, path: RawPath) -> List[GraphNode]:
        return [self.nodes[i] for i in path]


@dataclass
class ObstacleModel:
    centroids: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=complex))     # 障碍物质心（复平面）
    coefficients: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=complex))  # 每个质心的同伦积分系数

    @property
    def is_empty(self) -> bool:
        return self.centroids.size == 0


@dataclass
class PlanResult:
    ok: bool
    paths: List[SmoothedPath] = field(default_factory=list)
    raw_paths: List[List[GraphNode]] = field(default_factory=list)   # 含查询起终点的原始节点坐标
    all_found: bool = False
    reason: str = ""
    timings: Dict[str, float] = field(default_factory=dict)
