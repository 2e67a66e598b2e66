import pytest

from lv_browser.core.view_registry import ViewRegistry
from lv_browser.views import DualScatterView, ScatterView, ViolinScatterView


def test_register_and_create():
    registry = ViewRegistry()
    registry.register(ScatterView)
    registry.register(ViolinScatterView)

    view = registry.create("scatter", x_attribute="bedrooms", brush_mode="live")

    assert isinstance(view, ScatterView)
    assert view.x_attribute == "bedrooms"
    assert view.brush_mode == "live"
    assert "violin_scatter" in registry
    assert registry.all_classes() == [ScatterView, ViolinScatterView]


def test_each_create_returns_a_new_instance():
    registry = ViewRegistry()
    registry.register(DualScatterView)

    assert registry.create("dual_scatter") is not registry.create("dual_scatter")


def test_duplicate_id_is_rejected():
    registry = ViewRegistry()
    registry.register(ScatterView)

    with pytest.raises(ValueError):
        registry.register(ScatterView)


def test_non_view_is_rejected():
    registry = ViewRegistry()

    with pytest.raises(TypeError):
        registry.register(dict)


def test_unknown_view_raises_key_error():
    with pytest.raises(KeyError):
        ViewRegistry().create("heatmap")
    with pytest.raises(KeyError):
        ViewRegistry().get("heatmap")


def test_get_returns_the_class_create_builds():
    registry = ViewRegistry()
    registry.register(ScatterView)

    assert registry.get("scatter") is ScatterView
    assert type(registry.create("scatter", brush_mode="multi")) is registry.get("scatter")
