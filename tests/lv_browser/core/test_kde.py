import math

import numpy as np
import pytest

from lv_browser.core.kde import (
    GRID_SIZE,
    default_bandwidth,
    density,
    epanechnikov_kernel,
    evaluation_grid,
    kernel_density_estimator,
    max_density,
)


def test_evaluation_grid_has_fixed_size_and_step():
    grid = evaluation_grid((100.0, 260.0))

    assert len(grid) == GRID_SIZE
    assert grid[0] == 100.0
    assert grid[1] - grid[0] == pytest.approx(2.0)
    # the upper end itself is not sampled
    assert grid[-1] == pytest.approx(258.0)


def test_evaluation_grid_is_empty_for_degenerate_domain():
    assert evaluation_grid((5.0, 5.0)).size == 0
    assert evaluation_grid((5.0, 1.0)).size == 0


def test_default_bandwidth_is_span_over_forty():
    assert default_bandwidth((100.0, 260.0)) == pytest.approx(4.0)


def test_epanechnikov_kernel_support():
    k = epanechnikov_kernel(2.0)
    values = k(np.array([0.0, 1.0, 2.0, 2.5, -3.0]))

    assert values[0] == pytest.approx(0.375)
    assert values[1] == pytest.approx(0.75 * 0.75 / 2.0)
    assert values[2] == 0.0
    assert values[3] == 0.0
    assert values[4] == 0.0


def test_density_of_empty_sample_is_zero_over_full_grid():
    grid = evaluation_grid((0.0, 80.0))
    curve = density([], grid, default_bandwidth((0.0, 80.0)))

    assert len(curve) == GRID_SIZE
    assert [x for x, _ in curve] == [float(g) for g in grid]
    assert all(d == 0.0 for _, d in curve)
    assert max_density(curve) == 0.0


def test_single_point_density_peaks_at_value_and_decreases():
    domain = (100.0, 260.0)
    grid = evaluation_grid(domain)
    curve = dict(density([150.0], grid, default_bandwidth(domain)))

    assert curve[150.0] == pytest.approx(0.75 / 4.0)
    assert curve[150.0] > curve[152.0] > curve[154.0]
    assert curve[148.0] == pytest.approx(curve[152.0])
    # outside the kernel support
    assert curve[154.0] == 0.0
    assert curve[200.0] == 0.0
    assert max_density(tuple(curve.items())) == pytest.approx(0.75 / 4.0)


def test_non_finite_values_are_dropped_from_sample():
    grid = evaluation_grid((0.0, 80.0))
    estimate = kernel_density_estimator(epanechnikov_kernel(2.0), grid)

    assert estimate([10.0, math.nan, math.inf]) == estimate([10.0])


def test_non_positive_bandwidth_gives_zero_density():
    grid = evaluation_grid((0.0, 80.0))
    curve = density([10.0, 20.0], grid, 0.0)

    assert all(d == 0.0 for _, d in curve)
