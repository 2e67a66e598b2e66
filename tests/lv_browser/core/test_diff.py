from lv_browser.core.diff import reconcile


def test_reconcile_splits_enter_update_exit():
    old = {"a": 1, "b": 2, "c": 3}
    new = {"b": 2, "c": 30, "d": 4}

    diff = reconcile(old, new)

    assert diff.added == {"d": 4}
    assert diff.updated == {"c": 30}
    assert diff.removed == ("a",)
    assert diff.unchanged == ("b",)
    assert not diff.is_empty


def test_reconcile_identical_mappings_is_empty():
    prims = {"x": (1, 2), "y": (3, 4)}

    diff = reconcile(prims, dict(prims))

    assert diff.is_empty
    assert set(diff.unchanged) == {"x", "y"}


def test_reconcile_from_nothing_adds_everything():
    diff = reconcile({}, {"p": 1})

    assert diff.added == {"p": 1}
    assert diff.removed == ()
