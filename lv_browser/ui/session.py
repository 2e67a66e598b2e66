"""
Server-side state of one linked-views page.

A LinkedViewSession owns one renderer per configured view, the selection
coordinator that links them, and the translation of plotly interaction payloads
(clickData / selectedData / relayoutData) into the renderers' pointer events.
"""
from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import plotly.graph_objs as go

from lv_browser.config.model import GlobalConfig, ViewSpecConfig
from lv_browser.core.base_view import BaseView
from lv_browser.core.brush import MultiRectBrush, Rect
from lv_browser.core.dataset import Dataset
from lv_browser.core.exceptions import ConfigError
from lv_browser.core.selection import SelectionCoordinator, SelectionSet, ViewSelectionController
from lv_browser.core.surface import PointerEvent
from lv_browser.core.view_config import Size, ViewConfig
from lv_browser.core.view_registry import ViewRegistry
from lv_browser.ui.figures import error_figure

logger = logging.getLogger(__name__)

_SHAPE_EDIT = re.compile(r"^shapes\[(\d+)\]\.(x0|x1|y0|y1)$")
_RECT_TOLERANCE = 0.5


@dataclass
class ViewSlot:
    spec: ViewSpecConfig
    view: BaseView
    config: ViewConfig
    controller: ViewSelectionController

    @property
    def title(self) -> str:
        return self.spec.title or self.view.label


def _shape_rect(shape: Mapping[str, Any]) -> Rect:
    return Rect.from_corners(
        (float(shape["x0"]), float(shape["y0"])),
        (float(shape["x1"]), float(shape["y1"])),
    )


def _same_rect(a: Rect, b: Rect) -> bool:
    return all(
        abs(u - v) <= _RECT_TOLERANCE
        for u, v in zip((a.x, a.y, a.x2, a.y2), (b.x, b.y, b.x2, b.y2))
    )


class LinkedViewSession:
    """
    Every configured view over one dataset, linked through a SelectionCoordinator.

    All views share the y-domain of the dataset (or the one fixed in global.json)
    so prices line up across views. Handlers are serialised with a lock because
    Dash may run callbacks on several threads.
    """

    def __init__(
        self,
        global_config: GlobalConfig,
        dataset: Dataset,
        registry: ViewRegistry,
        coordinator: Optional[SelectionCoordinator] = None,
    ) -> None:
        self.global_config = global_config
        self.dataset = dataset
        self.registry = registry
        self.coordinator = coordinator or SelectionCoordinator()
        self.shared_domain = global_config.shared_domain or dataset.price_domain(global_config.y_attribute)
        self._lock = threading.RLock()
        self._slots: Dict[str, ViewSlot] = {}

        for spec in global_config.views:
            self._slots[spec.id] = self._build_slot(spec)

        logger.info(
            "session_ready",
            extra={
                "dataset": dataset.name,
                "n_records": len(dataset),
                "view_ids": list(self._slots),
                "shared_domain": list(self.shared_domain),
            },
        )

    def _build_slot(self, spec: ViewSpecConfig) -> ViewSlot:
        if spec.view_type not in self.registry:
            raise ConfigError(f"View '{spec.id}' uses unknown view type '{spec.view_type}'")
        try:
            view = self.registry.create(spec.view_type, **spec.view_options(self.global_config.y_attribute))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid options for view '{spec.id}': {e}") from e

        config = self.global_config.view_config(spec, self.shared_domain)
        controller = self.coordinator.controller_for(spec.id, self.shared_domain, config.variables)
        self.coordinator.register(spec.id, view.highlight)

        try:
            view.create(config)
            view.render(self.dataset, controller)
        except Exception:
            self.coordinator.unregister(spec.id)
            raise
        return ViewSlot(spec=spec, view=view, config=config, controller=controller)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    @property
    def view_ids(self) -> List[str]:
        return list(self._slots)

    def slot(self, view_id: str) -> ViewSlot:
        try:
            return self._slots[view_id]
        except KeyError:
            raise KeyError(f"View '{view_id}' not found in session")

    def view(self, view_id: str) -> BaseView:
        return self.slot(view_id).view

    @property
    def selection(self) -> SelectionSet:
        return self.coordinator.selection

    # ------------------------------------------------------------------
    # Figures and status
    # ------------------------------------------------------------------
    def figure(self, view_id: str) -> go.Figure:
        with self._lock:
            slot = self.slot(view_id)
            try:
                return slot.view.render_figure(title=slot.title)
            except Exception:
                logger.exception("Failed to build figure", extra={"view_id": view_id})
                return error_figure(f"View '{view_id}' could not be drawn; see the logs for details.")

    def figures(self) -> List[go.Figure]:
        return [self.figure(view_id) for view_id in self.view_ids]

    def brush_labels(self) -> List[str]:
        with self._lock:
            labels = []
            for slot in self._slots.values():
                label = slot.view.brush_range_label()
                labels.append(f"Brushed {slot.view.y_attribute}: {label}" if label else "")
            return labels

    def status_text(self) -> str:
        merged = self.coordinator.selection
        if not merged:
            return f"{len(self.dataset)} records, none selected"
        parts = [
            f"{view_id}: {len(self.coordinator.selection_for(view_id))}"
            for view_id in self.view_ids
        ]
        return f"{len(merged)} of {len(self.dataset)} records selected ({', '.join(parts)})"

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def handle_click(self, view_id: str, click_data: Optional[Mapping[str, Any]]) -> bool:
        """
        plotly clickData -> click on the primitive whose key is in customdata.
        """
        points = (click_data or {}).get("points") or []
        if not points or "customdata" not in points[0]:
            return False
        key = points[0]["customdata"]
        if isinstance(key, (list, tuple)):
            key = key[0]
        with self._lock:
            surface = self.view(view_id).surface
            return surface.dispatch(PointerEvent("click", target=str(key))) > 0

    def handle_box_select(self, view_id: str, selected_data: Optional[Mapping[str, Any]]) -> bool:
        """
        plotly box selection -> one live-brush drag. A cleared selection clears the brush.
        """
        with self._lock:
            view = self.view(view_id)
            if view.brush_mode != "live":
                return False
            box = (selected_data or {}).get("range")
            if not box:
                view.clear_all_brushes()
                return True
            (x0, x1), (y0, y1) = box["x"], box["y"]
            self._drag(view, Rect.from_corners((x0, y0), (x1, y1)))
            return True

    def handle_relayout(self, view_id: str, relayout: Optional[Mapping[str, Any]]) -> bool:
        """
        plotly drawrect/eraseshape/shape edits -> multi-rect brush changes.

        A full "shapes" list is diffed against the committed rectangles; edits
        of a single shape ("shapes[i].x0", ...) replace that rectangle.
        """
        if not relayout:
            return False
        with self._lock:
            view = self.view(view_id)
            if not isinstance(view.brush, MultiRectBrush):
                return False

            if "shapes" in relayout:
                drawn = [_shape_rect(s) for s in relayout["shapes"] or [] if s.get("type") == "rect"]
                self._sync_drawn(view, drawn)
                return True

            edits: Dict[int, Dict[str, float]] = {}
            for key, value in relayout.items():
                m = _SHAPE_EDIT.match(key)
                if m:
                    edits.setdefault(int(m.group(1)), {})[m.group(2)] = float(value)
            if not edits:
                return False

            n_static = len(view.state.layout.separators) if view.state and view.state.layout else 0
            committed = list(view.brush.committed)
            for shape_ix, coords in sorted(edits.items()):
                pos = shape_ix - n_static
                if not 0 <= pos < len(committed):
                    continue
                old = committed[pos]
                current = {"x0": old.rect.x, "y0": old.rect.y, "x1": old.rect.x2, "y1": old.rect.y2}
                current.update(coords)
                view.remove_brush(old.id)
                self._drag(view, _shape_rect(current))
            return True

    def _sync_drawn(self, view: BaseView, drawn: Sequence[Rect]) -> None:
        remaining = list(drawn)
        for committed in list(view.brush.committed):
            match = next((r for r in remaining if _same_rect(r, committed.rect)), None)
            if match is None:
                view.remove_brush(committed.id)
            else:
                remaining.remove(match)
        for rect in remaining:
            self._drag(view, rect)

    @staticmethod
    def _drag(view: BaseView, rect: Rect) -> None:
        surface = view.surface
        surface.dispatch(PointerEvent("pointerdown", rect.x, rect.y))
        surface.dispatch(PointerEvent("pointermove", rect.x2, rect.y2))
        surface.dispatch(PointerEvent("pointerup", rect.x2, rect.y2))

    def set_brush_mode(self, view_id: str, mode: str) -> None:
        with self._lock:
            self.view(view_id).set_brush_mode(mode)
            logger.info("brush_mode_changed", extra={"view_id": view_id, "brush_mode": mode})

    def clear(self) -> SelectionSet:
        """
        Drop every brush in every view, then the whole selection.
        """
        with self._lock:
            for slot in self._slots.values():
                slot.view.clear_all_brushes()
            return self.coordinator.clear_all()

    def resize(self, view_id: str, width: float, height: float) -> None:
        """
        A new container size means a new surface: tear down, create, render.
        """
        with self._lock:
            slot = self.slot(view_id)
            slot.config = ViewConfig(
                size=Size(width=width, height=height),
                shared_domain=slot.config.shared_domain,
                variables=slot.config.variables,
                seed=slot.config.seed,
            )
            # brushes live on the old surface; their contribution goes with it
            self.coordinator.clear_view(view_id)
            slot.view.create(slot.config)
            slot.view.render(self.dataset, slot.controller)
