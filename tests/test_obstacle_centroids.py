import numpy as np
import pytest

from voronoi_nav.config.models import ObstacleConfig
from voronoi_nav.core.grid_snapshot import GridSnapshot
from voronoi_nav.path_planner.obstacle_centroids import ComputeCoefficients, ObstacleCentroidExtractor

from conftest import make_two_gap_cells


def make_extractor(scale: float = 1.0, min_scaled_size: int = 8) -> ObstacleCentroidExtractor:
    cfg = ObstacleConfig(downscale_factor=scale, min_scaled_size=min_scaled_size)
    return ObstacleCentroidExtractor(cfg, occupancy_threshold=100)


def block_cells(size: int = 40) -> np.ndarray:
    cells = np.zeros((size, size), dtype=np.uint8)
    cells[15:25, 15:25] = 100
    return cells


def test_free_grid_has_no_obstacles() -> None:
    model = make_extractor().Extract(GridSnapshot.from_array(np.zeros((20, 20), dtype=np.uint8)))
    assert model.is_empty
    assert model.coefficients.size == 0


def test_single_block_centroid() -> None:
    model = make_extractor().Extract(GridSnapshot.from_array(block_cells()))
    assert len(model.centroids) == 1
    c = model.centroids[0]
    assert c.real == pytest.approx(19.5, abs=1.0)
    assert c.imag == pytest.approx(19.5, abs=1.0)
    assert model.coefficients[0] == pytest.approx(2.0 + 0j)


def test_downscaled_centroid_maps_back_to_grid() -> None:
    model = make_extractor(scale=0.5).Extract(GridSnapshot.from_array(block_cells()))
    assert len(model.centroids) == 1
    c = model.centroids[0]
    assert c.real == pytest.approx(19.5, abs=1.5)
    assert c.imag == pytest.approx(19.5, abs=1.5)


def test_centroid_follows_grid_axes() -> None:
    # 非对称位置：x 方向靠右，y 方向靠上
    cells = np.zeros((40, 60), dtype=np.uint8)
    cells[8:14, 40:50] = 100
    model = make_extractor().Extract(GridSnapshot.from_array(cells))
    assert len(model.centroids) == 1
    c = model.centroids[0]
    assert c.real == pytest.approx(44.5, abs=1.0)
    assert c.imag == pytest.approx(10.5, abs=1.0)


def test_obstacle_inside_walled_room_is_kept() -> None:
    cells = block_cells()
    cells[0, :] = cells[-1, :] = 100
    cells[:, 0] = cells[:, -1] = 100
    model = make_extractor().Extract(GridSnapshot.from_array(cells))
    assert len(model.centroids) == 1
    assert abs(model.centroids[0] - complex(19.5, 19.5)) < 1.5


def test_border_anchored_obstacle_is_ignored() -> None:
    cells = np.zeros((40, 40), dtype=np.uint8)
    cells[10:20, 0:6] = 100
    model = make_extractor().Extract(GridSnapshot.from_array(cells))
    assert model.is_empty


def test_two_obstacles_coefficients() -> None:
    cells = np.zeros((40, 60), dtype=np.uint8)
    cells[15:25, 10:20] = 100
    cells[15:25, 40:50] = 100
    model = make_extractor().Extract(GridSnapshot.from_array(cells))
    assert len(model.centroids) == 2

    c0, c1 = model.centroids
    tr = complex(59, 39)
    expected0 = (c0 ** 0.5 + (c0 - tr) ** 0.5) / (c0 - c1)
    assert model.coefficients[0] == pytest.approx(expected0)


def test_compute_coefficients_empty_and_single() -> None:
    assert ComputeCoefficients([], 10, 10).size == 0
    coeff = ComputeCoefficients([complex(3, 4)], 10, 10)
    assert coeff[0] == pytest.approx(2.0 + 0j)


def test_small_grid_is_not_downscaled() -> None:
    extractor = ObstacleCentroidExtractor(ObstacleConfig(), occupancy_threshold=100)
    # 31 * 0.25 ≈ 8 < 24：按原尺寸提取
    assert extractor.EffectiveScale(41, 31) == 1.0
    assert extractor.EffectiveScale(164, 124) == pytest.approx(0.25)
    assert make_extractor(scale=1.0).EffectiveScale(5, 5) == 1.0


def test_default_config_keeps_divider_between_narrow_gaps() -> None:
    extractor = ObstacleCentroidExtractor(ObstacleConfig(), occupancy_threshold=100)
    model = extractor.Extract(GridSnapshot.from_array(make_two_gap_cells()))
    assert len(model.centroids) == 1
    c = model.centroids[0]
    assert c.real == pytest.approx(20.0, abs=1.5)
    assert c.imag == pytest.approx(15.0, abs=1.5)


def test_default_config_downscales_large_grid() -> None:
    cells = np.kron(make_two_gap_cells(), np.ones((4, 4), dtype=np.uint8))
    extractor = ObstacleCentroidExtractor(ObstacleConfig(), occupancy_threshold=100)
    model = extractor.Extract(GridSnapshot.from_array(cells))
    assert len(model.centroids) == 1
    c = model.centroids[0]
    assert c.real == pytest.approx(81.5, abs=4.0)
    assert c.imag == pytest.approx(61.5, abs=4.0)
