from lv_browser.core.brush import (
    BrushPhase,
    LiveBrush,
    MultiRectBrush,
    Rect,
    hit_test,
)
from lv_browser.core.dataset import Record
from lv_browser.core.layout import PointPrimitive


def _point(index, x, y, suffix=""):
    return PointPrimitive(key=f"{index}{suffix}", record=Record(index), x=x, y=y)


def _points():
    return [
        _point(0, 10, 10),
        _point(1, 20, 20),
        _point(2, 30, 30),
        _point(3, 80, 80),
    ]


class _Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, records):
        self.calls.append([r.index for r in records])

    @property
    def last(self):
        return self.calls[-1]


def test_rect_bounds_are_inclusive():
    rect = Rect.from_corners((30, 30), (10, 10))

    assert (rect.x, rect.y, rect.x2, rect.y2) == (10, 10, 30, 30)
    assert rect.contains(10, 10)
    assert rect.contains(30, 30)
    assert not rect.contains(30.01, 30)


def test_hit_test_unions_rects_and_dedupes_records():
    points = _points() + [_point(1, 81, 81, suffix="_b")]

    selected = hit_test(points, [Rect(0, 0, 20, 20), Rect(75, 75, 90, 90)])

    assert [r.index for r in selected] == [0, 1, 3]
    assert hit_test(points, []) == []


def test_live_brush_reports_on_every_move():
    sink = _Recorder()
    brush = LiveBrush(_points, sink, extent=(100, 100))

    brush.start(0, 0)
    brush.move(15, 15)
    brush.move(35, 35)
    result = brush.end(35, 35)

    assert sink.calls == [[0], [0, 1, 2], [0, 1, 2]]
    assert [r.index for r in result] == [0, 1, 2]
    assert brush.rect == Rect(0, 0, 35, 35)
    assert brush.phase is BrushPhase.IDLE


def test_live_brush_degenerate_release_clears_selection():
    sink = _Recorder()
    brush = LiveBrush(_points, sink, extent=(100, 100))

    brush.start(20, 20)
    brush.move(40, 40)
    assert brush.end(20, 20) == []

    assert sink.last == []
    assert brush.rect is None


def test_live_brush_y_axis_spans_full_width():
    sink = _Recorder()
    brush = LiveBrush(_points, sink, extent=(100, 100), axis="y")

    brush.start(50, 5)
    brush.end(50, 25)

    assert brush.rect == Rect(0, 5, 100, 25)
    assert sink.last == [0, 1]


def test_live_brush_ignores_other_buttons():
    sink = _Recorder()
    brush = LiveBrush(_points, sink, extent=(100, 100))

    brush.start(0, 0, button=2)

    assert brush.move(50, 50) is None
    assert sink.calls == []


def test_multi_rect_discards_small_rectangles():
    sink = _Recorder()
    brush = MultiRectBrush(_points, sink)

    brush.pointer_down(0, 0)
    brush.pointer_move(3, 50)
    assert brush.pointer_up(3, 50) is None

    assert brush.committed == []
    assert sink.calls == []
    assert brush.phase is BrushPhase.IDLE


def test_multi_rect_selection_is_union_of_committed_rects():
    sink = _Recorder()
    brush = MultiRectBrush(_points, sink)

    brush.pointer_down(5, 5)
    brush.pointer_move(12, 12)
    brush.pointer_up(12, 12)
    brush.pointer_down(70, 70)
    brush.pointer_up(90, 90)

    assert sink.calls == [[0], [0, 3]]
    assert [c.id for c in brush.committed] == [1, 2]
    assert brush.phase is BrushPhase.COMMITTED

    assert [r.index for r in brush.remove(1)] == [3]
    assert len(brush.committed) == 1

    brush.clear()
    assert brush.committed == []
    assert sink.last == []
    assert brush.phase is BrushPhase.IDLE


def test_multi_rect_hit_test_reads_current_positions():
    positions = {"points": _points()}
    sink = _Recorder()
    brush = MultiRectBrush(lambda: positions["points"], sink)

    brush.pointer_down(0, 0)
    brush.pointer_up(15, 15)
    assert sink.last == [0]

    # points moved by a re-render
    positions["points"] = [_point(0, 50, 50), _point(1, 12, 12)]
    brush.update_selection()
    assert sink.last == [1]
