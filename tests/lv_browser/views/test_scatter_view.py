import pytest

from lv_browser.core.controller import CallbackController
from lv_browser.core.dataset import Dataset
from lv_browser.core.view_config import Size, ViewConfig
from lv_browser.views.scatter_view import ScatterView


def _make_dataset():
    return Dataset.from_records(
        [
            {"price": 1750000, "area": 3620},
            {"price": 4200000, "area": 4032},
            {"price": 9800000, "area": 5750},
            {"price": 13300000, "area": 7420},
        ]
    )


def _render(view):
    view.create(ViewConfig(size=Size(800, 400), seed=1))
    view.render(_make_dataset(), CallbackController(lambda r: None, lambda rs: None))
    return view


def test_scatter_view_metadata():
    assert ScatterView.id == "scatter"
    assert ScatterView.label == "Price vs Area"
    assert ScatterView.default_opacity == 0.3


def test_scatter_points_are_keyed_by_record_index():
    view = _render(ScatterView())

    keys = [p.key for p in view.surface.points()]

    assert keys == ["0", "1", "2", "3"]
    assert view.surface.style("0").opacity == 0.3


def test_scatter_maps_x_attribute_to_full_width():
    view = _render(ScatterView())
    points = {p.key: p for p in view.surface.points()}

    assert points["0"].x == 0.0
    assert points["3"].x == pytest.approx(view.surface.inner_width)
    # larger prices are drawn higher up
    assert points["3"].y < points["0"].y


def test_scatter_axis_ticks_are_formatted():
    view = _render(ScatterView())

    axes = view.axis_layout()

    assert axes["xaxis"]["title"] == "area"
    assert all("," in text or len(text) <= 3 for text in axes["yaxis"]["ticktext"])
    assert len(axes["yaxis"]["tickvals"]) == len(axes["yaxis"]["ticktext"])


def test_scatter_custom_x_attribute():
    view = ScatterView(x_attribute="bedrooms")
    data = Dataset.from_records([{"price": 1, "bedrooms": 2}, {"price": 3, "bedrooms": 4}])
    view.create(ViewConfig(seed=1))

    view.render(data, None)

    assert view.state.scales.x.domain == (2.0, 4.0)
