import numpy as np
import pytest

from voronoi_nav.config.models import PlannerConfig
from voronoi_nav.core.grid_snapshot import GridSnapshot
from voronoi_nav.utils.logger import SetupLogger

SetupLogger(log_dir=None, level="WARNING")


def make_two_gap_cells() -> np.ndarray:
    """41x31 房间：外墙 + x=19..21 的隔墙，隔墙在 y=6..9 和 y=21..24 各开一个门"""
    h, w = 31, 41
    cells = np.zeros((h, w), dtype=np.uint8)
    cells[0, :] = 100
    cells[-1, :] = 100
    cells[:, 0] = 100
    cells[:, -1] = 100
    cells[:, 19:22] = 100
    cells[6:10, 19:22] = 0
    cells[21:25, 19:22] = 0
    return cells


@pytest.fixture
def cfg() -> PlannerConfig:
    c = PlannerConfig()
    c.obstacle.downscale_factor = 1.0
    c.parallel.num_workers = 3
    c.parallel.parallel_min_items = 16
    return c


@pytest.fixture
def free_grid() -> GridSnapshot:
    return GridSnapshot.from_array(np.zeros((10, 10), dtype=np.uint8))


@pytest.fixture
def two_gap_grid() -> GridSnapshot:
    return GridSnapshot.from_array(make_two_gap_cells())
