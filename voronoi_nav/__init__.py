#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
voronoi_nav：基于 Voronoi 路网的多路径（同伦类不同）规划引擎
"""

from voronoi_nav.config import PlannerConfig, load_config
from voronoi_nav.core import GraphNode, GridSnapshot
from voronoi_nav.service import PlanningEngine, create_engine

__all__ = [
    'PlannerConfig',
    'load_config',
    'GraphNode',
    'GridSnapshot',
    'PlanningEngine',
    'create_engine',
]
