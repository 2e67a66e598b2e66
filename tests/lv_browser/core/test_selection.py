import logging

from lv_browser.core.dataset import Record
from lv_browser.core.selection import (
    EMPTY_SELECTION,
    SelectionCoordinator,
    SelectionSet,
    merge,
)


def _records(*indices):
    return [Record(i, {"price": 100 * i}) for i in indices]


def test_selection_set_membership_and_equality():
    sel = SelectionSet(_records(1, 2, 2))

    assert len(sel) == 2
    assert Record(1) in sel
    assert 2 in sel
    assert 3 not in sel
    assert sel == SelectionSet(_records(2, 1))
    assert sel.indices == frozenset({1, 2})


def test_merge_is_a_union():
    merged = merge({"a": _records(1), "b": _records(2, 3)})

    assert merged.indices == {1, 2, 3}


def test_merge_identity_and_idempotence():
    x = _records(1, 2)

    assert merge({}) == EMPTY_SELECTION
    assert merge({"a": x, "b": []}) == SelectionSet(x)
    assert merge({"a": x, "b": x}) == SelectionSet(x)


def test_coordinator_unions_across_views_and_replaces_within():
    coordinator = SelectionCoordinator()
    seen = []
    coordinator.register("a", seen.append)
    coordinator.register("b")

    coordinator.update("a", _records(1))
    coordinator.update("b", _records(2, 3))
    assert coordinator.selection.indices == {1, 2, 3}

    # a new click in view a replaces a's own selection only
    coordinator.update("a", _records(4))
    assert coordinator.selection.indices == {2, 3, 4}
    assert [r.index for r in coordinator.selection_for("a")] == [4]

    coordinator.clear_view("b")
    assert coordinator.selection.indices == {4}

    assert [s.indices for s in seen] == [{1}, {1, 2, 3}, {2, 3, 4}, {4}]


def test_clear_all_empties_every_view():
    coordinator = SelectionCoordinator()
    coordinator.update("a", _records(1))
    coordinator.update("b", _records(2))

    assert coordinator.clear_all() == EMPTY_SELECTION
    assert coordinator.selection_for("a") == ()
    assert set(coordinator.view_ids) == {"a", "b"}


def test_failing_highlight_does_not_block_other_views(caplog):
    coordinator = SelectionCoordinator()
    seen = []

    def broken(_selection):
        raise RuntimeError("boom")

    coordinator.register("broken", broken)
    coordinator.register("ok", seen.append)

    with caplog.at_level(logging.ERROR):
        coordinator.update("ok", _records(1))

    assert [s.indices for s in seen] == [{1}]
    assert "Highlight failed for view broken" in caplog.text


def test_controller_reports_clicks_and_brushes():
    coordinator = SelectionCoordinator()
    controller = coordinator.controller_for("v", shared_domain=(0, 1))

    controller.on_point_click(Record(5))
    assert coordinator.selection.indices == {5}

    controller.on_brush_select(_records(6, 7))
    assert coordinator.selection.indices == {6, 7}
    assert controller.shared_domain == (0, 1)


def test_unregister_drops_view_contribution():
    coordinator = SelectionCoordinator()
    coordinator.update("a", _records(1))
    coordinator.update("b", _records(2))

    coordinator.unregister("a")

    assert coordinator.selection.indices == {2}


def test_update_logs_the_counts_it_committed(caplog):
    coordinator = SelectionCoordinator()
    coordinator.update("b", _records(9))

    with caplog.at_level(logging.INFO, logger="lv_browser.core.selection"):
        coordinator.update("a", (r for r in _records(1, 2, 3)))

    record = next(r for r in caplog.records if r.getMessage() == "selection_update")
    assert record.view_id == "a"
    assert record.n_view_selected == 3
    assert record.n_selected == 4
    assert coordinator.selection_for("a") == tuple(_records(1, 2, 3))
