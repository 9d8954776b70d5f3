#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
规划器配置模型

使用Pydantic定义类型安全的配置模型，所有字段都有与原始规划器一致的默认值，
因此 PlannerConfig() 可以直接使用，YAML 只需覆盖需要修改的字段。
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class GraphConfig(BaseModel):
    """路网构建配置（单位均为栅格像素）"""
    occupancy_threshold: int = Field(100, description="占据阈值：大于等于该值的格子作为 Voronoi 生成点")
    collision_threshold: int = Field(85, description="碰撞阈值：大于等于该值的格子视为不可通行")
    pixels_to_skip: int = Field(0, description="扫描占据格子时跳过的像素数（步长 = pixels_to_skip + 1）")
    line_check_resolution: float = Field(0.1, description="线段碰撞检测采样间隔（像素）")
    hash_resolution: float = Field(0.1, description="顶点哈希取整精度（像素）")
    node_connection_threshold_pix: float = Field(1.0, description="孤立节点重连距离（像素）")

    @field_validator('occupancy_threshold', 'collision_threshold')
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        """验证阈值范围"""
        if not 0 <= v <= 255:
            raise ValueError(f"阈值必须在0-255之间: {v}")
        return v

    @field_validator('pixels_to_skip')
    @classmethod
    def validate_pixels_to_skip(cls, v: int) -> int:
        """验证跳过像素数"""
        if v < 0:
            raise ValueError(f"pixels_to_skip不能为负数: {v}")
        return v

    @field_validator('line_check_resolution', 'hash_resolution', 'node_connection_threshold_pix')
    @classmethod
    def validate_positive_float(cls, v: float) -> float:
        """验证正数"""
        if v <= 0:
            raise ValueError(f"参数必须大于0: {v}")
        return v


class ObstacleConfig(BaseModel):
    """障碍物质心提取配置"""
    downscale_factor: float = Field(0.25, description="提取轮廓前的图像缩放比例 (0, 1]")
    canny_low: float = Field(50.0, description="Canny 低阈值")
    canny_high: float = Field(150.0, description="Canny 高阈值")
    canny_aperture: int = Field(3, description="Canny Sobel 核大小")
    border_margin: int = Field(1, description="贴边判定边距（缩放后像素），贴边轮廓不作为障碍物")
    min_scaled_size: int = Field(24, description="缩放后短边的最小像素数，不足时不缩放")

    @field_validator('downscale_factor')
    @classmethod
    def validate_downscale_factor(cls, v: float) -> float:
        """验证缩放比例"""
        if not 0.0 < v <= 1.0:
            raise ValueError(f"缩放比例必须在(0, 1]之间: {v}")
        return v

    @field_validator('canny_aperture')
    @classmethod
    def validate_canny_aperture(cls, v: int) -> int:
        """Sobel 核只能是 3/5/7"""
        if v not in (3, 5, 7):
            raise ValueError(f"canny_aperture必须是3、5或7: {v}")
        return v

    @field_validator('min_scaled_size')
    @classmethod
    def validate_min_scaled_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"min_scaled_size必须大于0: {v}")
        return v

    @field_validator('border_margin')
    @classmethod
    def validate_border_margin(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"border_margin不能为负数: {v}")
        return v


class SearchConfig(BaseModel):
    """多路径搜索配置"""
    h_class_threshold: float = Field(0.2, description="同伦类相对差异阈值")
    num_paths: int = Field(2, description="默认返回的路径数（最短路径 + 备选路径）")

    @field_validator('h_class_threshold')
    @classmethod
    def validate_h_class_threshold(cls, v: float) -> float:
        """验证同伦阈值"""
        if v < 0:
            raise ValueError(f"同伦类阈值不能为负数: {v}")
        return v

    @field_validator('num_paths')
    @classmethod
    def validate_num_paths(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"num_paths必须大于等于1: {v}")
        return v


class SmoothingConfig(BaseModel):
    """Bezier 平滑配置（距离单位为米，使用时按栅格分辨率换算为像素）"""
    min_node_sep_sq: float = Field(1.0, description="控制点最小间距平方（平方米）")
    extra_point_distance: float = Field(1.0, description="分段衔接处外推点距离（米）")
    bezier_max_control_points: int = Field(10, description="单段 Bezier 最大控制点数")
    bezier_samples: int = Field(21, description="单段 Bezier 采样点数")

    @field_validator('min_node_sep_sq', 'extra_point_distance')
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"距离参数不能为负数: {v}")
        return v

    @field_validator('bezier_max_control_points')
    @classmethod
    def validate_max_control_points(cls, v: int) -> int:
        """至少需要3个控制点，否则分段无法前进"""
        if v < 3:
            raise ValueError(f"bezier_max_control_points必须大于等于3: {v}")
        return v

    @field_validator('bezier_samples')
    @classmethod
    def validate_bezier_samples(cls, v: int) -> int:
        if v < 2:
            raise ValueError(f"bezier_samples必须大于等于2: {v}")
        return v


class ParallelConfig(BaseModel):
    """并行计算配置"""
    num_workers: Optional[int] = Field(None, description="工作线程数（None = CPU 核心数）")
    parallel_min_items: int = Field(64, description="数据量低于该值时退化为串行")

    @field_validator('num_workers')
    @classmethod
    def validate_num_workers(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"num_workers必须大于0: {v}")
        return v

    @field_validator('parallel_min_items')
    @classmethod
    def validate_parallel_min_items(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"parallel_min_items必须大于0: {v}")
        return v


class LogConfig(BaseModel):
    """日志配置"""
    level: str = Field("INFO", description="日志级别")
    log_dir: Optional[str] = Field("Logs", description="日志目录（None 表示只输出到控制台）")
    print_timings: bool = Field(False, description="是否输出各阶段耗时")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """验证日志级别"""
        valid = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid:
            raise ValueError(f"日志级别必须是 {valid} 之一: {v}")
        return v.upper()


class PlannerConfig(BaseModel):
    """规划器主配置"""
    graph: GraphConfig = Field(default_factory=GraphConfig, description="路网构建配置")
    obstacle: ObstacleConfig = Field(default_factory=ObstacleConfig, description="障碍物质心配置")
    search: SearchConfig = Field(default_factory=SearchConfig, description="多路径搜索配置")
    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig, description="Bezier 平滑配置")
    parallel: ParallelConfig = Field(default_factory=ParallelConfig, description="并行计算配置")
    log: LogConfig = Field(default_factory=LogConfig, description="日志配置")
