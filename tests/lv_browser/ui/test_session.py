import plotly.graph_objs as go
import pytest

from lv_browser.config.model import GlobalConfig, ViewSpecConfig
from lv_browser.core.dataset import Dataset
from lv_browser.core.exceptions import ConfigError, SurfaceError
from lv_browser.core.selection import SelectionCoordinator
from lv_browser.ui.dash_app import build_view_registry
from lv_browser.ui.session import LinkedViewSession


def _make_dataset():
    return Dataset.from_records(
        {
            "price": price,
            "area": 3000 + 500 * i,
            "bedrooms": 1 + i % 3,
            "stories": 1 + i % 2,
            "bathrooms": 1 + i % 2,
        }
        for i, price in enumerate([100, 150, 150, 200, 250])
    )


def _make_global_config(views=None):
    if views is None:
        views = [
            {"id": "left", "view": "scatter", "x_attribute": "area", "brush_mode": "live"},
            {"id": "right", "view": "violin_scatter", "variables": ["bedrooms"], "brush_mode": "multi"},
        ]
    return GlobalConfig(
        ui_title="Test",
        data_path=None,
        views=[ViewSpecConfig.from_raw(raw, source_path=None, index=i) for i, raw in enumerate(views)],
        seed=5,
    )


def _make_session(views=None):
    return LinkedViewSession(_make_global_config(views), _make_dataset(), build_view_registry())


def test_session_renders_every_view_on_shared_domain():
    session = _make_session()

    assert session.view_ids == ["left", "right"]
    assert session.shared_domain == (100.0, 250.0)
    for view_id in session.view_ids:
        assert session.view(view_id).state.scales.y.domain == (100, 260)
    assert all(isinstance(f, go.Figure) for f in session.figures())


def test_click_selects_record():
    session = _make_session()

    assert session.handle_click("left", {"points": [{"customdata": "2"}]})

    assert session.selection.indices == {2}
    assert session.view("right").surface.style("2_bedrooms").opacity == 1.0


def test_click_without_customdata_is_ignored():
    session = _make_session()

    assert not session.handle_click("left", None)
    assert not session.handle_click("left", {"points": [{"x": 1}]})


def test_box_select_drives_live_brush():
    session = _make_session()
    left = session.view("left")

    session.handle_box_select("left", {"range": {"x": [0, left.surface.inner_width], "y": [150, 0]}})

    assert session.selection.indices == {3, 4}
    assert session.brush_labels()[0].startswith("Brushed price: ")

    session.handle_box_select("left", None)
    assert session.selection.indices == set()
    assert session.brush_labels() == ["", ""]


def test_box_select_ignored_in_multi_mode():
    session = _make_session()

    assert not session.handle_box_select("right", {"range": {"x": [0, 10], "y": [0, 10]}})


def test_drawn_shapes_become_committed_rectangles():
    session = _make_session()
    right = session.view("right")
    width = right.surface.inner_width
    separator = {"type": "line", "x0": 1, "x1": 1, "y0": 0, "y1": 340}
    rect = {"type": "rect", "x0": 0, "y0": 0, "x1": width, "y1": 150}

    assert session.handle_relayout("right", {"shapes": [separator, rect]})
    assert session.selection.indices == {3, 4}
    assert len(right.brush.committed) == 1

    # same shapes again: nothing new is committed
    session.handle_relayout("right", {"shapes": [separator, rect]})
    assert len(right.brush.committed) == 1

    # erased
    session.handle_relayout("right", {"shapes": [separator]})
    assert right.brush.committed == []
    assert session.selection.indices == set()


def test_shape_edit_replaces_rectangle():
    session = _make_session()
    right = session.view("right")
    width = right.surface.inner_width
    session.handle_relayout("right", {"shapes": [{"type": "rect", "x0": 0, "y0": 0, "x1": width, "y1": 30}]})
    assert session.selection.indices == {4}

    # four separators come first in the figure's shape list
    session.handle_relayout("right", {"shapes[4].y1": 150})

    assert session.selection.indices == {3, 4}
    assert len(right.brush.committed) == 1


def test_relayout_without_shapes_is_ignored():
    session = _make_session()

    assert not session.handle_relayout("right", {"autosize": True})
    assert not session.handle_relayout("right", None)
    assert not session.handle_relayout("left", {"shapes": []})


def test_selection_is_union_across_views_and_clear_resets():
    session = _make_session()
    right = session.view("right")
    session.handle_click("left", {"points": [{"customdata": "0"}]})
    session.handle_relayout(
        "right",
        {"shapes": [{"type": "rect", "x0": 0, "y0": 0, "x1": right.surface.inner_width, "y1": 150}]},
    )

    assert session.selection.indices == {0, 3, 4}
    assert session.status_text() == "3 of 5 records selected (left: 1, right: 2)"

    session.clear()

    assert session.selection.indices == set()
    assert right.brush.committed == []
    assert session.status_text() == "5 records, none selected"


def test_set_brush_mode():
    session = _make_session()

    session.set_brush_mode("right", "live")

    assert session.view("right").brush.mode == "live"
    assert session.figure("right").layout.dragmode == "select"


def test_resize_recreates_surface():
    session = _make_session()
    old_surface = session.view("left").surface
    session.handle_click("left", {"points": [{"customdata": "1"}]})

    session.resize("left", 500, 300)

    view = session.view("left")
    assert old_surface.destroyed
    assert view.surface.width == 500
    assert len(list(view.surface.points())) == 5
    assert session.selection.indices == set()


def test_unknown_view_type_is_a_config_error():
    with pytest.raises(ConfigError):
        _make_session([{"id": "x", "view": "heatmap"}])


def test_bad_view_options_are_a_config_error():
    with pytest.raises(ConfigError):
        _make_session([{"id": "x", "view": "violin_scatter", "x_attribute": "area"}])


def test_unknown_view_id_raises_key_error():
    with pytest.raises(KeyError):
        _make_session().view("nope")


def test_failed_view_is_unregistered_from_the_coordinator():
    coordinator = SelectionCoordinator()
    views = [
        {"id": "ok", "view": "scatter"},
        {"id": "broken", "view": "scatter", "size": {"width": -5, "height": 10}},
    ]

    with pytest.raises(SurfaceError):
        LinkedViewSession(_make_global_config(views), _make_dataset(), build_view_registry(), coordinator)

    assert coordinator.view_ids == ("ok",)
