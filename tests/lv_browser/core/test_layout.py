import math
from dataclasses import replace

import numpy as np
import pytest

from lv_browser.core.dataset import Dataset
from lv_browser.core.layout import (
    DUAL_OFFSET_PX,
    JITTER_FRACTION,
    TICK_OFFSET_PX,
    ViolinOutline,
    layout_dual_scatter,
    layout_scatter,
    layout_violin_scatter,
    nearest_sample_index,
)
from lv_browser.core.scales import build_scatter_scales, build_violin_scales, variable_centers
from lv_browser.core.view_config import resolve_variables


def _make_dataset():
    return Dataset.from_records(
        [
            {"price": 100, "area": 3000, "bedrooms": 1, "stories": 1, "bathrooms": 1},
            {"price": 150, "area": 3500, "bedrooms": 2, "stories": 1, "bathrooms": 1},
            {"price": 150, "area": 4100, "bedrooms": 2, "stories": 2, "bathrooms": 1},
            {"price": 200, "area": 5000, "bedrooms": 3, "stories": 2, "bathrooms": 2},
            {"price": 250, "area": 7000, "bedrooms": 3, "stories": 3, "bathrooms": 2},
        ]
    )


def _violin_layout(seed=0):
    ds = _make_dataset()
    scales = build_violin_scales(ds, "price", 664, 340, shared_domain=(100, 250))
    variables = resolve_variables(["bedrooms", "stories", "bathrooms"])
    layout = layout_violin_scatter(ds, scales, variables, "price", np.random.default_rng(seed))
    return ds, scales, variables, layout


def test_nearest_sample_index():
    grid = [0.0, 2.0, 4.0, 6.0]

    assert nearest_sample_index(grid, -5.0) == 0
    assert nearest_sample_index(grid, 2.9) == 1
    assert nearest_sample_index(grid, 3.1) == 2
    assert nearest_sample_index(grid, 99.0) == 3


def test_violin_layout_counts_and_keys():
    ds, scales, variables, layout = _violin_layout()

    # one outline per (variable, category), including empty categories
    assert len(layout.violins) == 3 * 5
    assert len(layout.points) == 3 * len(ds)
    assert len(layout.separators) == 4
    assert [t.text for t in layout.ticks] == ["1", "2", "3", "4", "5"]

    prims = layout.primitives()
    assert "bedrooms_1" in prims
    assert "0_bedrooms" in prims
    assert "sep_1" in prims
    assert "tick_5" in prims
    assert len(prims) == 15 + 15 + 4 + 5


def test_violin_layout_geometry():
    ds, scales, variables, layout = _violin_layout()
    band = scales.x_band

    assert layout.max_half_width == pytest.approx(max(12.0, band.bandwidth / 2 * 0.72))
    assert layout.global_max == pytest.approx(
        max(max(d for _, d in curve) for curve in layout.densities.values())
    )

    # empty categories get an all-zero curve
    assert all(d == 0.0 for _, d in layout.densities[("bedrooms", 5)])

    for outline in layout.violins:
        assert all(0.0 <= w <= layout.max_half_width + 1e-9 for _, w in outline.profile)

    sep = layout.primitives()["sep_1"]
    assert sep.x == pytest.approx((band(1) + band(2)) / 2 + band.bandwidth / 2)

    tick = layout.primitives()["tick_3"]
    assert tick.x == pytest.approx(band.center(3))
    assert tick.y == pytest.approx(scales.height + TICK_OFFSET_PX)


def test_violin_points_stay_near_their_variable_center():
    ds, scales, variables, layout = _violin_layout()
    band = scales.x_band
    order = [v.name for v in variables]

    for p in layout.points:
        centers = variable_centers(band(p.category), band.bandwidth, len(variables))
        center = centers[order.index(p.variable)]
        limit = max(1.0, layout.max_half_width * JITTER_FRACTION)
        assert abs(p.x - center) <= limit + 1e-9
        assert p.y == pytest.approx(scales.y(p.record.number("price")))
        assert math.isfinite(p.x) and math.isfinite(p.y)


def test_violin_layout_is_reproducible_with_seed():
    _, _, _, first = _violin_layout(seed=42)
    _, _, _, second = _violin_layout(seed=42)
    _, _, _, other = _violin_layout(seed=43)

    assert [(p.key, p.x) for p in first.points] == [(p.key, p.x) for p in second.points]
    assert [p.x for p in first.points] != [p.x for p in other.points]


def test_violin_layout_keeps_previous_jitter():
    ds, scales, variables, first = _violin_layout(seed=42)
    drawn = first.primitives()
    # one point pushed far outside its band gets a fresh draw
    moved = first.points[0]
    drawn[moved.key] = replace(moved, x=moved.x + 1000.0)

    second = layout_violin_scatter(
        ds, scales, variables, "price", np.random.default_rng(7), previous=drawn
    )

    kept = {p.key: p.x for p in first.points[1:]}
    assert {p.key: p.x for p in second.points[1:]} == kept
    redrawn = next(p for p in second.points if p.key == moved.key)
    assert abs(redrawn.x - moved.x) < 1000.0


def test_violin_outline_path_is_closed():
    outline = ViolinOutline(
        key="v",
        variable="bedrooms",
        category=1,
        center=50.0,
        profile=((0.0, 1.0), (10.0, 5.0)),
        fill="#fff",
        stroke="#000",
    )

    xs, ys = outline.path()

    assert xs == [49.0, 45.0, 55.0, 51.0, 49.0]
    assert ys == [0.0, 10.0, 10.0, 0.0, 0.0]


def test_scatter_layout_hides_non_finite_points():
    ds = Dataset.from_records(
        [
            {"price": 100, "area": 3000},
            {"price": "abc", "area": 3500},
            {"price": 200, "area": None},
            {"price": 250, "area": 7000},
        ]
    )
    scales = build_scatter_scales(ds, ["area"], "price", 500, 300)

    layout = layout_scatter(ds, scales, "area", "price")

    assert [p.key for p in layout.points] == ["0", "3"]
    assert layout.points[0].x == 0.0
    assert layout.points[1].x == 500.0


def test_dual_scatter_offsets_and_shapes():
    ds = _make_dataset()
    scales = build_scatter_scales(ds, ["bedrooms", "bathrooms"], "price", 500, 300)
    variables = resolve_variables(["bedrooms", "bathrooms"])

    layout = layout_dual_scatter(ds, scales, variables, "price")
    prims = layout.primitives()

    assert len(layout.points) == 2 * len(ds)
    bed, bath = prims["3_bedrooms"], prims["3_bathrooms"]
    assert bed.shape == "circle" and bath.shape == "square"
    assert bed.x == pytest.approx(scales.x(3) - DUAL_OFFSET_PX)
    assert bath.x == pytest.approx(scales.x(2) + DUAL_OFFSET_PX)
    assert bed.y == bath.y


def test_dual_scatter_drops_records_with_any_invalid_value():
    ds = Dataset.from_records(
        [
            {"price": 100, "bedrooms": 1, "bathrooms": 1},
            {"price": 200, "bedrooms": 2, "bathrooms": "?"},
            {"price": 300, "bedrooms": 3, "bathrooms": 2},
        ]
    )
    scales = build_scatter_scales(ds, ["bedrooms", "bathrooms"], "price", 500, 300)

    layout = layout_dual_scatter(ds, scales, resolve_variables(["bedrooms", "bathrooms"]), "price")

    assert {p.record.index for p in layout.points} == {0, 2}
