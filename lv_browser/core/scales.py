from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Hashable, List, Optional, Sequence, Tuple

import numpy as np

from lv_browser.core.dataset import Dataset

Domain = Tuple[float, float]

CATEGORY_DOMAIN: Tuple[int, ...] = (1, 2, 3, 4, 5)
DEFAULT_BAND_PADDING = 0.06

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def _tick_increment(start: float, stop: float, count: int) -> float:
    """
    Tick step for [start, stop]; negative values encode 1/step for steps below 1.
    """
    step = (stop - start) / max(0, count)
    if not step > 0 or not math.isfinite(step):
        return 0.0
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power >= 0:
        return factor * 10 ** power
    return -(10 ** -power) / factor


class LinearScale:
    """
    Continuous linear map from a numeric domain to a pixel range.
    """

    def __init__(self, domain: Domain, range_: Tuple[float, float]) -> None:
        self.domain: Domain = (float(domain[0]), float(domain[1]))
        self.range: Tuple[float, float] = (float(range_[0]), float(range_[1]))

    def nice(self, count: int = 10) -> "LinearScale":
        """
        Extend the domain so both ends fall on round tick values.
        """
        d0, d1 = self.domain
        reverse = d1 < d0
        start, stop = (d1, d0) if reverse else (d0, d1)
        prestep = None

        for _ in range(10):
            step = _tick_increment(start, stop, count)
            if step == prestep:
                break
            if step > 0:
                start = math.floor(start / step) * step
                stop = math.ceil(stop / step) * step
            elif step < 0:
                start = math.ceil(start * step) / step
                stop = math.floor(stop * step) / step
            else:
                break
            prestep = step

        self.domain = (stop, start) if reverse else (start, stop)
        return self

    @property
    def span(self) -> float:
        return self.domain[1] - self.domain[0]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def map_array(self, values: np.ndarray) -> np.ndarray:
        d0, d1 = self.domain
        r0, r1 = self.range
        values = np.asarray(values, dtype=float)
        if d1 == d0:
            return np.full(values.shape, (r0 + r1) / 2)
        return r0 + (values - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return (d0 + d1) / 2
        return d0 + (float(pixel) - r0) / (r1 - r0) * (d1 - d0)

    def ticks(self, count: int = 10) -> List[float]:
        lo, hi = sorted(self.domain)
        step = _tick_increment(lo, hi, count)
        if step > 0:
            first, last = math.ceil(lo / step), math.floor(hi / step)
            return [i * step for i in range(first, last + 1)]
        if step < 0:
            inv = -step
            first, last = math.ceil(lo * inv), math.floor(hi * inv)
            return [i / inv for i in range(first, last + 1)]
        return [lo]


class BandScale:
    """
    Discrete categories mapped to evenly spaced, padded bands.

    Inner and outer padding are the same fraction of the step; bands are centred
    in the range.
    """

    def __init__(
        self,
        domain: Sequence[Hashable],
        range_: Tuple[float, float],
        padding: float = DEFAULT_BAND_PADDING,
    ) -> None:
        self.domain = tuple(domain)
        self.range = (float(range_[0]), float(range_[1]))
        self.padding = float(padding)

        start, stop = self.range
        n = len(self.domain)
        self.step = (stop - start) / max(1.0, n - self.padding + self.padding * 2)
        self.bandwidth = self.step * (1 - self.padding)
        offset = start + (stop - start - self.step * (n - self.padding)) * 0.5
        self._starts = {c: offset + self.step * i for i, c in enumerate(self.domain)}

    def __call__(self, category: Hashable) -> float:
        return self._starts[category]

    def center(self, category: Hashable) -> float:
        return self._starts[category] + self.bandwidth / 2


def variable_centers(band_start: float, bandwidth: float, n_variables: int) -> List[float]:
    """
    Horizontal centres for n variables side by side in one band: (i+1)/(n+1) of the width.
    """
    return [band_start + bandwidth * (i + 1) / (n_variables + 1) for i in range(n_variables)]


def resolve_shared_domain(
    values: np.ndarray, supplied: Optional[Sequence[float]] = None
) -> Optional[Domain]:
    """
    Supplied domain when it is a finite pair, else [min, max] of the finite values.

    Returns None when nothing usable is left (no finite values, or min == max).
    """
    if supplied is not None and len(supplied) == 2:
        lo, hi = float(supplied[0]), float(supplied[1])
        if math.isfinite(lo) and math.isfinite(hi) and hi > lo:
            return (lo, hi)

    values = np.asarray(values, dtype=float)
    values = values[np.isfinite(values)]
    if values.size == 0:
        return None
    lo, hi = float(values.min()), float(values.max())
    if not hi > lo:
        return None
    return (lo, hi)


@dataclass(frozen=True)
class ViolinScales:
    y: LinearScale
    x_band: BandScale
    width: float
    height: float

    @property
    def domain(self) -> Domain:
        return self.y.domain


@dataclass(frozen=True)
class ScatterScales:
    x: LinearScale
    y: LinearScale
    width: float
    height: float


def _usable(width: float, height: float) -> bool:
    return math.isfinite(width) and math.isfinite(height) and width > 0 and height > 0


def build_y_scale(
    dataset: Dataset,
    y_attribute: str,
    height: float,
    shared_domain: Optional[Sequence[float]] = None,
) -> Optional[LinearScale]:
    """
    Niced y scale over the shared domain, range [height, 0].

    None when the dataset has no finite values for the attribute, or when the
    resulting domain is degenerate.
    """
    values = dataset.valid_values(y_attribute)
    if values.size == 0:
        return None
    domain = resolve_shared_domain(values, shared_domain)
    if domain is None:
        return None
    return LinearScale(domain, (height, 0.0)).nice()


def build_violin_scales(
    dataset: Dataset,
    y_attribute: str,
    width: float,
    height: float,
    shared_domain: Optional[Sequence[float]] = None,
    padding: float = DEFAULT_BAND_PADDING,
    categories: Sequence[int] = CATEGORY_DOMAIN,
) -> Optional[ViolinScales]:
    if not _usable(width, height):
        return None
    y = build_y_scale(dataset, y_attribute, height, shared_domain)
    if y is None:
        return None
    return ViolinScales(
        y=y,
        x_band=BandScale(categories, (0.0, width), padding=padding),
        width=width,
        height=height,
    )


def build_scatter_scales(
    dataset: Dataset,
    x_attributes: Sequence[str],
    y_attribute: str,
    width: float,
    height: float,
    shared_domain: Optional[Sequence[float]] = None,
) -> Optional[ScatterScales]:
    """
    Scales for scatter views. The x domain spans every listed x attribute.
    """
    if not _usable(width, height):
        return None
    y = build_y_scale(dataset, y_attribute, height, shared_domain)
    if y is None:
        return None

    xs = np.concatenate([dataset.valid_values(attr) for attr in x_attributes]) if x_attributes else np.empty(0)
    if xs.size == 0:
        return None
    x = LinearScale((float(xs.min()), float(xs.max())), (0.0, width))
    return ScatterScales(x=x, y=y, width=width, height=height)
