"""
Pointer-driven rectangular selection in pixel space.

Two strategies share the same hit test:

- LiveBrush: one rectangle, selection recomputed on every move.
- MultiRectBrush: rectangles are committed on release and kept until removed;
  the selection is the union over all committed rectangles.

Both read point positions through a callable so they always test the positions
currently on the surface, never a cached copy.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from lv_browser.core.dataset import Record
from lv_browser.core.layout import PointPrimitive

logger = logging.getLogger(__name__)

MIN_BRUSH_SIZE = 4.0
LEFT_BUTTON = 0

PointsProvider = Callable[[], Iterable[PointPrimitive]]
SelectionSink = Callable[[List[Record]], None]


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle [x, x2] x [y, y2] in pixels, with x <= x2 and y <= y2.
    """
    x: float
    y: float
    x2: float
    y2: float

    @classmethod
    def from_corners(cls, p0: Tuple[float, float], p1: Tuple[float, float]) -> Rect:
        (ax, ay), (bx, by) = p0, p1
        return cls(min(ax, bx), min(ay, by), max(ax, bx), max(ay, by))

    @property
    def width(self) -> float:
        return self.x2 - self.x

    @property
    def height(self) -> float:
        return self.y2 - self.y

    def contains(self, px: float, py: float) -> bool:
        # bounds are inclusive
        return self.x <= px <= self.x2 and self.y <= py <= self.y2


def hit_test(points: Iterable[PointPrimitive], rects: Sequence[Rect]) -> List[Record]:
    """
    Records whose point lies inside any rect, once per record index, first-seen order.
    """
    if not rects:
        return []
    seen: Dict[int, Record] = {}
    for p in points:
        if p.record.index in seen:
            continue
        for r in rects:
            if r.contains(p.x, p.y):
                seen[p.record.index] = p.record
                break
    return list(seen.values())


class BrushPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"


class LiveBrush:
    """
    Single brush updated continuously while the pointer is down.

    axis="xy" selects a 2D region; axis="y" spans the full width and only the
    vertical extent follows the pointer.
    """

    mode = "live"

    def __init__(
        self,
        points: PointsProvider,
        on_select: SelectionSink,
        extent: Tuple[float, float],
        axis: str = "xy",
    ) -> None:
        if axis not in ("xy", "y"):
            raise ValueError(f"Unknown brush axis '{axis}'")
        self._points = points
        self._on_select = on_select
        self.extent = extent
        self.axis = axis
        self.phase = BrushPhase.IDLE
        self.rect: Optional[Rect] = None
        self._origin: Optional[Tuple[float, float]] = None

    def _rect_to(self, x: float, y: float) -> Rect:
        width, height = self.extent
        ox, oy = self._origin
        if self.axis == "y":
            rect = Rect.from_corners((0.0, oy), (width, y))
        else:
            rect = Rect.from_corners((ox, oy), (x, y))
        # clamp to the drawing area
        return Rect(
            max(0.0, rect.x), max(0.0, rect.y), min(width, rect.x2), min(height, rect.y2)
        )

    def _is_degenerate(self, rect: Rect) -> bool:
        if self.axis == "y":
            return rect.height <= 0
        return rect.width <= 0 or rect.height <= 0

    def start(self, x: float, y: float, button: int = LEFT_BUTTON) -> None:
        if button != LEFT_BUTTON:
            return
        self.phase = BrushPhase.DRAGGING
        self._origin = (x, y)
        self.rect = None

    def move(self, x: float, y: float) -> Optional[List[Record]]:
        if self.phase is not BrushPhase.DRAGGING:
            return None
        self.rect = self._rect_to(x, y)
        selected = hit_test(self._points(), [self.rect])
        self._on_select(selected)
        return selected

    def end(self, x: float, y: float) -> Optional[List[Record]]:
        if self.phase is not BrushPhase.DRAGGING:
            return None
        rect = self._rect_to(x, y)
        self.phase = BrushPhase.IDLE
        self._origin = None

        if self._is_degenerate(rect):
            self.rect = None
            self._on_select([])
            return []

        self.rect = rect
        selected = hit_test(self._points(), [rect])
        self._on_select(selected)
        return selected

    def clear(self) -> None:
        self.phase = BrushPhase.IDLE
        self.rect = None
        self._origin = None
        self._on_select([])

    @property
    def rects(self) -> List[Rect]:
        return [self.rect] if self.rect is not None else []


@dataclass(frozen=True)
class CommittedRect:
    id: int
    rect: Rect


class MultiRectBrush:
    """
    Persistent free-drawn rectangles.

    pointer_down starts a rectangle, pointer_move resizes it, pointer_up commits
    it unless it is smaller than min_size in either direction (accidental click).
    """

    mode = "multi"

    def __init__(
        self,
        points: PointsProvider,
        on_select: SelectionSink,
        min_size: float = MIN_BRUSH_SIZE,
    ) -> None:
        self._points = points
        self._on_select = on_select
        self.min_size = min_size
        self.phase = BrushPhase.IDLE
        self.current: Optional[Rect] = None
        self.committed: List[CommittedRect] = []
        self._start: Optional[Tuple[float, float]] = None
        self._ids = itertools.count(1)

    @property
    def rects(self) -> List[Rect]:
        return [c.rect for c in self.committed]

    def pointer_down(self, x: float, y: float, button: int = LEFT_BUTTON) -> None:
        if button != LEFT_BUTTON:
            return
        self.phase = BrushPhase.DRAGGING
        self._start = (x, y)
        self.current = Rect(x, y, x, y)

    def pointer_move(self, x: float, y: float) -> None:
        if self.phase is not BrushPhase.DRAGGING or self._start is None:
            return
        self.current = Rect.from_corners(self._start, (x, y))

    def pointer_up(self, x: float, y: float) -> Optional[List[Record]]:
        if self.phase is not BrushPhase.DRAGGING or self._start is None:
            return None
        rect = Rect.from_corners(self._start, (x, y))
        self._start = None
        self.current = None

        if rect.width < self.min_size or rect.height < self.min_size:
            logger.debug("Discarded brush below minimum size: %r", rect)
            self.phase = BrushPhase.COMMITTED if self.committed else BrushPhase.IDLE
            return None

        self.committed.append(CommittedRect(id=next(self._ids), rect=rect))
        self.phase = BrushPhase.COMMITTED
        return self.update_selection()

    def update_selection(self) -> List[Record]:
        selected = hit_test(self._points(), self.rects)
        self._on_select(selected)
        return selected

    def remove(self, rect_id: int) -> List[Record]:
        self.committed = [c for c in self.committed if c.id != rect_id]
        if not self.committed and self.phase is BrushPhase.COMMITTED:
            self.phase = BrushPhase.IDLE
        return self.update_selection()

    def clear(self) -> None:
        self.committed = []
        self.current = None
        self._start = None
        self.phase = BrushPhase.IDLE
        self._on_select([])
