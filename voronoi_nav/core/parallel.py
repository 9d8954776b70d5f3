#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
并行分段计算

把 [0, n) 切成若干连续区间，交给线程池独立计算，再按区间顺序收集结果。
NumPy 在底层运算时会释放 GIL，因此线程池即可获得并行加速。
数据量较小时退化为串行，避免调度开销。
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple, TypeVar

T = TypeVar("T")


def resolve_workers(num_workers: Optional[int]) -> int:
    """None 表示使用 CPU 核心数"""
    if num_workers is None:
        return os.cpu_count() or 1
    return max(1, int(num_workers))


def split_ranges(n: int, parts: int) -> List[Tuple[int, int]]:
    """
    把 [0, n) 均匀切分为最多 parts 个非空连续区间

    Args:
        n: 元素个数
        parts: 期望区间数

    Returns:
        [(lo, hi), ...]，按 lo 升序，覆盖 [0, n) 且互不相交
    """
    if n <= 0:
        return []
    parts = max(1, min(parts, n))
    base, extra = divmod(n, parts)
    ranges = []
    lo = 0
    for i in range(parts):
        hi = lo + base + (1 if i < extra else 0)
        ranges.append((lo, hi))
        lo = hi
    return ranges


def map_ranges(
    func: Callable[[int, int], T],
    n: int,
    num_workers: Optional[int] = None,
    min_items: int = 64,
) -> List[T]:
    """
    对 [0, n) 的各个连续区间并行执行 func(lo, hi)

    工作函数只读共享数据，结果由调用方按区间顺序合并。
    工作线程中的异常在汇合点通过 future.result() 重新抛出。

    Args:
        func: 区间计算函数
        n: 元素个数
        num_workers: 工作线程数（None = CPU 核心数）
        min_items: 元素数不超过该值时串行执行

    Returns:
        各区间结果列表，顺序与区间顺序一致
    """
    if n <= 0:
        return []

    workers = resolve_workers(num_workers)
    if workers == 1 or n <= min_items:
        return [func(0, n)]

    ranges = split_ranges(n, workers)
    with ThreadPoolExecutor(max_workers=len(ranges)) as executor:
        futures = [executor.submit(func, lo, hi) for lo, hi in ranges]
        return [future.result() for future in futures]
