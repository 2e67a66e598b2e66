"""
Kernel density estimation over a fixed evaluation grid.

The violin views sample every density curve at GRID_SIZE points of the shared
y-domain with bandwidth = span / BANDWIDTH_DIVISOR. Both numbers are tuned
defaults and are not derived from the data.
"""
from __future__ import annotations

from typing import Callable, Iterable, Sequence, Tuple

import numpy as np

GRID_SIZE = 80
BANDWIDTH_DIVISOR = 40

DensityCurve = Tuple[Tuple[float, float], ...]
Kernel = Callable[[np.ndarray], np.ndarray]


def epanechnikov_kernel(bandwidth: float) -> Kernel:
    """
    K(u) = 0.75 * (1 - (u/bw)^2) / bw for |u/bw| <= 1, else 0.
    """
    def kernel(u: np.ndarray) -> np.ndarray:
        v = np.asarray(u, dtype=float) / bandwidth
        return np.where(np.abs(v) <= 1, 0.75 * (1 - v * v) / bandwidth, 0.0)

    return kernel


def kernel_density_estimator(
    kernel: Kernel, evaluation_points: Sequence[float]
) -> Callable[[Iterable[float]], DensityCurve]:
    """
    Return a function mapping a sample to (x, mean kernel(x - v)) pairs.
    """
    xs = np.asarray(evaluation_points, dtype=float)

    def estimate(sample: Iterable[float]) -> DensityCurve:
        values = np.asarray(list(sample), dtype=float)
        values = values[np.isfinite(values)]
        if values.size == 0 or xs.size == 0:
            return tuple((float(x), 0.0) for x in xs)

        # rows: evaluation points, cols: sample values
        weights = kernel(xs[:, None] - values[None, :])
        dens = weights.mean(axis=1)
        dens = np.where(np.isfinite(dens), dens, 0.0)
        return tuple((float(x), float(d)) for x, d in zip(xs, dens))

    return estimate


def density(
    sample: Iterable[float],
    evaluation_points: Sequence[float],
    bandwidth: float,
) -> DensityCurve:
    """
    Epanechnikov density of `sample` at every evaluation point.

    An empty sample (after dropping NaN) gives zero everywhere.
    """
    if not bandwidth > 0:
        return tuple((float(x), 0.0) for x in evaluation_points)
    return kernel_density_estimator(epanechnikov_kernel(bandwidth), evaluation_points)(sample)


def evaluation_grid(domain: Tuple[float, float], count: int = GRID_SIZE) -> np.ndarray:
    lo, hi = domain
    step = (hi - lo) / count
    if not step > 0:
        return np.empty(0, dtype=float)
    return lo + step * np.arange(count, dtype=float)


def default_bandwidth(domain: Tuple[float, float]) -> float:
    lo, hi = domain
    return (hi - lo) / BANDWIDTH_DIVISOR


def max_density(curve: DensityCurve) -> float:
    if not curve:
        return 0.0
    return max(d for _, d in curve)
