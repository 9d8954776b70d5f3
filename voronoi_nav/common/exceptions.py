#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
自定义异常类：定义 Voronoi 规划模块的专用异常
"""


class PlannerError(Exception):
    """规划模块基础异常类"""
    pass


class RoadmapBuildError(PlannerError):
    """路网构建失败异常（空栅格、Voronoi 生成失败、工作线程内存不足、查询进行中）"""
    pass


class NoRouteError(PlannerError):
    """无可达路径异常（起终点附近无无碰撞节点，或 A* 开放集耗尽）"""
    pass


class StaleRoadmapError(PlannerError):
    """路网过期异常：原始路径中相邻节点之间已出现碰撞，需要等待下一次重建"""
    pass


class ConfigurationError(PlannerError):
    """配置错误异常"""
    pass
