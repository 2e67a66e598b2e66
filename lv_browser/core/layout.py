from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from lv_browser.core.dataset import Dataset, Record
from lv_browser.core.kde import (
    DensityCurve,
    default_bandwidth,
    density,
    evaluation_grid,
    max_density,
)
from lv_browser.core.scales import LinearScale, ScatterScales, ViolinScales, variable_centers
from lv_browser.core.view_config import VariableSpec

logger = logging.getLogger(__name__)

MIN_VIOLIN_HALF_WIDTH = 12.0
VIOLIN_BAND_FRACTION = 0.72
JITTER_FRACTION = 0.9
MIN_JITTER = 1.0
JITTER_TOLERANCE = 1e-9
DUAL_OFFSET_PX = 12.0
TICK_OFFSET_PX = 14.0


@dataclass(frozen=True)
class PointPrimitive:
    key: str
    record: Record
    x: float
    y: float
    variable: Optional[str] = None
    category: Optional[int] = None
    shape: str = "circle"
    size: float = 6.0
    color: str = "#4A90E2"


@dataclass(frozen=True)
class ViolinOutline:
    """
    Symmetric outline around `center`: one (y pixel, half width) per grid sample.
    """
    key: str
    variable: str
    category: int
    center: float
    profile: Tuple[Tuple[float, float], ...]
    fill: str
    stroke: str
    opacity: float = 0.6

    def path(self) -> Tuple[List[float], List[float]]:
        """
        Closed polygon (xs, ys): left edge top to bottom, then right edge back up.
        """
        left = [(self.center - w, y) for y, w in self.profile]
        right = [(self.center + w, y) for y, w in reversed(self.profile)]
        pts = left + right
        if pts:
            pts.append(pts[0])
        return [p[0] for p in pts], [p[1] for p in pts]


@dataclass(frozen=True)
class Separator:
    key: str
    x: float
    y1: float
    y2: float


@dataclass(frozen=True)
class Tick:
    key: str
    x: float
    y: float
    text: str


Primitive = Union[PointPrimitive, ViolinOutline, Separator, Tick]


@dataclass
class Layout:
    points: List[PointPrimitive] = field(default_factory=list)
    violins: List[ViolinOutline] = field(default_factory=list)
    separators: List[Separator] = field(default_factory=list)
    ticks: List[Tick] = field(default_factory=list)

    # Violin views only
    grid: Tuple[float, ...] = ()
    densities: Dict[Tuple[str, int], DensityCurve] = field(default_factory=dict)
    global_max: float = 0.0
    max_half_width: float = 0.0

    def primitives(self) -> Dict[str, Primitive]:
        out: Dict[str, Primitive] = {}
        for group in (self.violins, self.separators, self.ticks, self.points):
            for prim in group:
                out[prim.key] = prim
        return out


def nearest_sample_index(grid: Sequence[float], value: float) -> int:
    """
    Index of the grid sample closest to `value` (grid sorted ascending).
    """
    ix = bisect_left(grid, value)
    if ix <= 0:
        return 0
    if ix >= len(grid):
        return len(grid) - 1
    return ix if grid[ix] - value < value - grid[ix - 1] else ix - 1


def density_scale(global_max: float, max_half_width: float) -> LinearScale:
    return LinearScale((0.0, global_max or 1.0), (0.0, max_half_width))


def _kept_jitter(
    previous: Optional[Mapping[str, object]],
    key: str,
    category: int,
    center: float,
    spread: float,
) -> Optional[float]:
    if not previous:
        return None
    prev = previous.get(key)
    if not isinstance(prev, PointPrimitive) or prev.category != category:
        return None
    if abs(prev.x - center) > spread + JITTER_TOLERANCE:
        return None
    return prev.x


def layout_violin_scatter(
    dataset: Dataset,
    scales: ViolinScales,
    variables: Sequence[VariableSpec],
    y_attribute: str,
    rng: np.random.Generator,
    previous: Optional[Mapping[str, object]] = None,
) -> Layout:
    """
    Violin outlines plus jittered points for every (variable, category) pair.

    All categories of the band scale are laid out, including empty ones, which
    get an all-zero curve. Outline widths share one density scale across the
    whole view so they are comparable.

    `previous` maps keys to the primitives currently drawn. A point whose old x
    still lies inside its band's jitter window keeps that x, so re-rendering
    unchanged data leaves every point where it was, seeded or not.
    """
    domain = scales.y.domain
    grid = evaluation_grid(domain)
    bandwidth = default_bandwidth(domain)
    grid_list = [float(g) for g in grid]

    y_values = dataset.numeric(y_attribute).to_numpy()
    y_valid = np.isfinite(y_values)
    records = dataset.records
    categories = scales.x_band.domain

    # 1) densities for every (variable, category) + global max
    densities: Dict[Tuple[str, int], DensityCurve] = {}
    members: Dict[Tuple[str, int], np.ndarray] = {}
    global_max = 0.0
    for var in variables:
        var_values = dataset.numeric(var.name).to_numpy()
        for c in categories:
            mask = (var_values == c) & y_valid
            members[(var.name, c)] = np.flatnonzero(mask)
            curve = density(y_values[mask], grid, bandwidth)
            densities[(var.name, c)] = curve
            global_max = max(global_max, max_density(curve))

    half_band = scales.x_band.bandwidth / 2
    max_half_width = max(MIN_VIOLIN_HALF_WIDTH, half_band * VIOLIN_BAND_FRACTION)
    dscale = density_scale(global_max, max_half_width)

    layout = Layout(
        grid=tuple(grid_list),
        densities=densities,
        global_max=global_max,
        max_half_width=max_half_width,
    )

    # 2) separators between neighbouring bands
    for c, nxt in zip(categories[:-1], categories[1:]):
        x = (scales.x_band(c) + scales.x_band(nxt)) / 2 + scales.x_band.bandwidth / 2
        layout.separators.append(Separator(key=f"sep_{c}", x=x, y1=0.0, y2=scales.height))

    # 3) outlines, points and ticks per band
    for c in categories:
        band_start = scales.x_band(c)
        centers = variable_centers(band_start, scales.x_band.bandwidth, len(variables))

        for var, center in zip(variables, centers):
            curve = densities[(var.name, c)]
            profile = tuple((scales.y(v), dscale(d)) for v, d in curve)
            layout.violins.append(
                ViolinOutline(
                    key=f"{var.name}_{c}",
                    variable=var.name,
                    category=c,
                    center=center,
                    profile=profile,
                    fill=var.fill_color or "#cfe7ff",
                    stroke=var.stroke_color or "#79b1ff",
                )
            )

            for pos in members[(var.name, c)]:
                value = float(y_values[pos])
                local = curve[nearest_sample_index(grid_list, value)][1] if curve else 0.0
                spread = max(MIN_JITTER, dscale(local) * JITTER_FRACTION)
                rec = records[pos]
                key = f"{rec.index}_{var.name}"
                x = _kept_jitter(previous, key, c, center, spread)
                if x is None:
                    x = center + rng.uniform(-1.0, 1.0) * spread
                layout.points.append(
                    PointPrimitive(
                        key=key,
                        record=rec,
                        x=x,
                        y=scales.y(value),
                        variable=var.name,
                        category=c,
                        color=var.point_color or "#4A90E2",
                    )
                )

        layout.ticks.append(
            Tick(
                key=f"tick_{c}",
                x=band_start + scales.x_band.bandwidth / 2,
                y=scales.height + TICK_OFFSET_PX,
                text=str(c),
            )
        )

    logger.debug(
        "Violin layout computed",
        extra={"n_points": len(layout.points), "global_max": global_max},
    )
    return layout


def layout_scatter(
    dataset: Dataset,
    scales: ScatterScales,
    x_attribute: str,
    y_attribute: str,
    color: str = "#4A90E2",
) -> Layout:
    """
    One point per record at (x_scale(x), y_scale(y)).

    Records whose pixel position is not finite are hidden instead of being drawn
    at some fallback location.
    """
    px = scales.x.map_array(dataset.numeric(x_attribute).to_numpy())
    py = scales.y.map_array(dataset.numeric(y_attribute).to_numpy())

    layout = Layout()
    hidden = 0
    for rec, x, y in zip(dataset.records, px, py):
        if not (np.isfinite(x) and np.isfinite(y)):
            hidden += 1
            continue
        layout.points.append(
            PointPrimitive(key=str(rec.index), record=rec, x=float(x), y=float(y), color=color)
        )

    if hidden:
        logger.debug("Hid %d records with non-finite coordinates", hidden)
    return layout


def layout_dual_scatter(
    dataset: Dataset,
    scales: ScatterScales,
    x_attributes: Sequence[VariableSpec],
    y_attribute: str,
) -> Layout:
    """
    Two markers per record, one per x attribute, pushed apart horizontally.

    The first attribute is drawn as circles shifted left, the second as squares
    shifted right. Records with any invalid value are left out entirely.
    """
    first, second = x_attributes[0], x_attributes[1]
    xa = dataset.numeric(first.name).to_numpy()
    xb = dataset.numeric(second.name).to_numpy()
    ys = dataset.numeric(y_attribute).to_numpy()

    layout = Layout()
    for rec, a, b, y in zip(dataset.records, xa, xb, ys):
        if not (np.isfinite(a) and np.isfinite(b) and np.isfinite(y)):
            continue
        py = scales.y(y)
        for var, value, offset, shape in (
            (first, a, -1.0, "circle"),
            (second, b, 1.0, "square"),
        ):
            layout.points.append(
                PointPrimitive(
                    key=f"{rec.index}_{var.name}",
                    record=rec,
                    x=scales.x(value) + offset * DUAL_OFFSET_PX,
                    y=py,
                    variable=var.name,
                    shape=shape,
                    size=8.0,
                    color=var.point_color or "#4A90E2",
                )
            )
    return layout
