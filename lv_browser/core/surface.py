from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from lv_browser.core.brush import Rect
from lv_browser.core.diff import RenderDiff
from lv_browser.core.exceptions import SurfaceError
from lv_browser.core.layout import PointPrimitive, Primitive, ViolinOutline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Margin:
    top: float = 20.0
    right: float = 16.0
    bottom: float = 40.0
    left: float = 120.0


@dataclass(frozen=True)
class PrimitiveStyle:
    opacity: float = 0.85
    stroke: Optional[str] = None
    stroke_width: float = 0.0


@dataclass(frozen=True)
class PointerEvent:
    """
    Pointer input in surface (inner, margin-free) pixel coordinates.

    type is one of "pointerdown", "pointermove", "pointerup", "click".
    target is the key of the primitive under the pointer, if any.
    """
    type: str
    x: float = 0.0
    y: float = 0.0
    button: int = 0
    target: Optional[str] = None


Listener = Callable[[PointerEvent], None]


class Surface:
    """
    Drawing surface owned by exactly one view.

    Holds the keyed primitives currently drawn, their highlight styles, brush
    overlays, and the interaction listeners. Listener names follow the
    "event.namespace" convention so a view can replace or detach its own
    handlers without touching anyone else's.
    """

    def __init__(
        self,
        width: float,
        height: float,
        margin: Optional[Margin] = None,
        default_opacity: float = 0.85,
    ) -> None:
        if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
            raise SurfaceError(f"Invalid surface size {width}x{height}")

        if margin is not None:
            offsets = (margin.top, margin.right, margin.bottom, margin.left)
            if not all(math.isfinite(v) and v >= 0 for v in offsets):
                raise SurfaceError(f"Invalid surface margin {margin!r}")
            inner_w = width - margin.left - margin.right
            inner_h = height - margin.top - margin.bottom
            if inner_w <= 0 or inner_h <= 0:
                raise SurfaceError(
                    f"Margin {margin!r} leaves no drawing area in {width}x{height}"
                )
        else:
            inner_w, inner_h = width, height

        self.width = float(width)
        self.height = float(height)
        self.margin = margin
        self.inner_width = float(inner_w)
        self.inner_height = float(inner_h)
        self.default_style = PrimitiveStyle(opacity=default_opacity)

        self._primitives: Dict[str, Primitive] = {}
        self._styles: Dict[str, PrimitiveStyle] = {}
        self._overlays: Dict[str, Rect] = {}
        self._listeners: Dict[str, Dict[str, Listener]] = defaultdict(dict)
        self.destroyed = False

    @property
    def transform(self) -> Optional[Tuple[float, float]]:
        """(left, top) translation of the drawing area, None for a fallback surface."""
        if self.margin is None:
            return None
        return (self.margin.left, self.margin.top)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------
    @property
    def primitives(self) -> Mapping[str, Primitive]:
        return MappingProxyType(self._primitives)

    def points(self) -> Iterator[PointPrimitive]:
        for prim in self._primitives.values():
            if isinstance(prim, PointPrimitive):
                yield prim

    def violins(self) -> Iterator[ViolinOutline]:
        for prim in self._primitives.values():
            if isinstance(prim, ViolinOutline):
                yield prim

    def apply(self, diff: RenderDiff[Primitive]) -> None:
        """
        Apply a keyed diff. Entering primitives start with the default style;
        updated ones keep their current style.
        """
        self._check_alive()
        for key in diff.removed:
            self._primitives.pop(key, None)
            self._styles.pop(key, None)
        for key, prim in diff.added.items():
            self._primitives[key] = prim
            self._styles[key] = self._initial_style(prim)
        for key, prim in diff.updated.items():
            self._primitives[key] = prim
            self._styles.setdefault(key, self._initial_style(prim))

    def _initial_style(self, prim: Primitive) -> PrimitiveStyle:
        if isinstance(prim, ViolinOutline):
            return PrimitiveStyle(opacity=prim.opacity)
        return self.default_style

    def style(self, key: str) -> PrimitiveStyle:
        return self._styles.get(key, self.default_style)

    def set_style(self, key: str, **changes) -> None:
        if key not in self._primitives:
            return
        self._styles[key] = replace(self.style(key), **changes)

    # ------------------------------------------------------------------
    # Brush overlays
    # ------------------------------------------------------------------
    @property
    def overlays(self) -> Mapping[str, Rect]:
        return MappingProxyType(self._overlays)

    def set_overlays(self, rects: Mapping[str, Rect]) -> None:
        self._overlays = dict(rects)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def on(self, name: str, listener: Optional[Listener]) -> None:
        """
        Bind `listener` to "event.namespace". Passing None detaches it.
        """
        self._check_alive()
        event, _, namespace = name.partition(".")
        if listener is None:
            self._listeners[event].pop(namespace, None)
        else:
            self._listeners[event][namespace] = listener

    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self._listeners.values())

    def dispatch(self, event: PointerEvent) -> int:
        """
        Deliver an event to every listener bound to its type. Returns how many ran.
        """
        if self.destroyed:
            return 0
        handlers: List[Listener] = list(self._listeners.get(event.type, {}).values())
        for handler in handlers:
            handler(event)
        return len(handlers)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self._primitives.clear()
        self._styles.clear()
        self._overlays.clear()

    def destroy(self) -> None:
        self.clear()
        self._listeners.clear()
        self.destroyed = True

    def _check_alive(self) -> None:
        if self.destroyed:
            raise SurfaceError("Surface has been destroyed")
