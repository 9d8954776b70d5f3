#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
规划器配置模块

提供类型安全的配置管理和验证。
"""

from .models import (
    PlannerConfig,
    GraphConfig,
    ObstacleConfig,
    SearchConfig,
    SmoothingConfig,
    ParallelConfig,
    LogConfig,
)
from .loader import load_config

__all__ = [
    'PlannerConfig',
    'GraphConfig',
    'ObstacleConfig',
    'SearchConfig',
    'SmoothingConfig',
    'ParallelConfig',
    'LogConfig',
    'load_config'
]
