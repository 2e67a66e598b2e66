from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import plotly.graph_objs as go

from lv_browser.core.brush import LiveBrush, MultiRectBrush, Rect
from lv_browser.core.controller import ViewController, inert_controller
from lv_browser.core.dataset import Dataset, Record
from lv_browser.core.diff import RenderDiff, reconcile
from lv_browser.core.exceptions import SurfaceError, ViewLifecycleError
from lv_browser.core.layout import Layout, PointPrimitive, Separator
from lv_browser.core.selection import EMPTY_SELECTION, SelectionSet
from lv_browser.core.surface import Margin, PointerEvent, Surface
from lv_browser.core.view_config import VariableSpec, ViewConfig, resolve_variables

logger = logging.getLogger(__name__)

BRUSH_MODES = ("live", "multi")
BRUSH_FILL = "rgba(74,144,226,0.12)"
BRUSH_LINE = "#1f6fbf"
TRANSPARENT = "rgba(0,0,0,0)"


class ViewLifecycle(str, Enum):
    UNCREATED = "uncreated"
    CREATED = "created"
    RENDERED = "rendered"
    DISPOSED = "disposed"


@dataclass
class RenderState:
    """
    Everything a render pass produced, kept together so it can be inspected
    (and tested) without a real drawing surface.
    """
    config: ViewConfig
    dataset: Optional[Dataset] = None
    controller: Optional[ViewController] = None
    scales: Any = None
    layout: Optional[Layout] = None
    variables: Tuple[VariableSpec, ...] = ()
    last_diff: Optional[RenderDiff] = None


class BaseView(ABC):
    """
    Abstract base class for all linked views (the per-view renderer).

    Defines the contract that every view in the app must follow
    - expose an 'id' - used internally
    - expose a 'label' - used for UI/human-readable applications
    - implement 'compute_scales' - scales for a dataset, or None when it can't be drawn
    - implement 'compute_layout' - positioned, keyed primitives for those scales

    Lifecycle: uncreated -> created -> rendered (re-rendered any number of times) -> disposed.
    create() can be called again at any point; it tears the old surface down first.
    """

    id: str = None
    label: str = None

    margin = Margin()
    default_opacity = 0.85
    dimmed_opacity = 0.12
    selected_stroke = "#333"
    selected_stroke_width = 1.2
    default_variables: Tuple[str, ...] = ()

    def __init__(
        self,
        y_attribute: str = "price",
        brush_mode: str = "multi",
        brush_axis: str = "xy",
        show_y_axis: bool = True,
    ) -> None:
        if brush_mode not in BRUSH_MODES:
            raise ValueError(f"Unknown brush mode '{brush_mode}'")
        self.y_attribute = y_attribute
        self.brush_mode = brush_mode
        self.brush_axis = brush_axis
        self.show_y_axis = show_y_axis

        self.surface: Optional[Surface] = None
        self.brush: Union[LiveBrush, MultiRectBrush, None] = None
        self.state: Optional[RenderState] = None
        self.selection: SelectionSet = EMPTY_SELECTION
        self.lifecycle = ViewLifecycle.UNCREATED

    # ------------------------------------------------------------------
    # Hooks for concrete views
    # ------------------------------------------------------------------
    @abstractmethod
    def compute_scales(
        self,
        data: Dataset,
        shared_domain: Optional[Tuple[float, float]],
        variables: Sequence[VariableSpec],
    ) -> Any:
        """
        Scales for this dataset, or None when there is nothing drawable
        (no finite y values, degenerate domain).
        """
        raise NotImplementedError()

    @abstractmethod
    def compute_layout(
        self,
        data: Dataset,
        scales: Any,
        variables: Sequence[VariableSpec],
        rng: np.random.Generator,
    ) -> Layout:
        raise NotImplementedError()

    def axis_layout(self) -> Dict[str, Dict[str, Any]]:
        """
        Extra plotly axis settings (tick values/labels) for the current scales.
        """
        return {"xaxis": {}, "yaxis": {}}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def create(self, config: ViewConfig) -> Surface:
        """
        Discard any previous surface and allocate a new one sized to config.size.
        """
        if self.surface is not None:
            self.dispose()

        width, height = config.resolved_size()
        self.surface = self._allocate_surface(width, height)
        self.state = RenderState(config=config)
        self.brush = self._make_brush()
        self._bind_listeners()
        self.lifecycle = ViewLifecycle.CREATED

        logger.info(
            "view_created",
            extra={"view_id": self.id, "width": width, "height": height, "brush_mode": self.brush_mode},
        )
        return self.surface

    def _allocate_surface(self, width: float, height: float) -> Surface:
        try:
            return Surface(width, height, margin=self.margin, default_opacity=self.default_opacity)
        except SurfaceError:
            logger.exception(
                "Surface allocation failed for view %s; falling back to a surface without margins",
                self.id,
            )
            return Surface(width, height, margin=None, default_opacity=self.default_opacity)

    def dispose(self) -> None:
        """
        Remove every primitive and detach all listeners.
        """
        n_listeners = 0
        if self.surface is not None:
            n_listeners = self.surface.listener_count()
            self.surface.destroy()
        self.surface = None
        self.brush = None
        self.state = None
        self.lifecycle = ViewLifecycle.DISPOSED
        logger.debug("view_disposed", extra={"view_id": self.id, "n_listeners": n_listeners})

    def _require_surface(self) -> Surface:
        if self.surface is None or self.state is None:
            raise ViewLifecycleError(
                f"View '{self.id}' has no surface (state: {self.lifecycle.value}); call create() first"
            )
        return self.surface

    # ------------------------------------------------------------------
    # Render
    # ------------------------------------------------------------------
    def render(self, data: Optional[Dataset], controller: Optional[ViewController] = None) -> Optional[RenderDiff]:
        """
        Full recompute of scales, densities and primitives, reconciled by key.

        Returns the applied diff, or None when the pass was skipped (empty data
        or nothing numeric to chart). A skipped pass leaves the surface as it was.
        """
        surface = self._require_surface()
        state = self.state
        if controller is None:
            controller = inert_controller()

        if data is None or len(data) == 0:
            logger.debug("render_skipped_empty", extra={"view_id": self.id})
            return None

        shared_domain = getattr(controller, "shared_domain", None) or state.config.shared_domain
        requested = (
            getattr(controller, "variables", None)
            or state.config.variables
            or self.default_variables
        )
        variables = tuple(resolve_variables(requested))

        scales = self.compute_scales(data, shared_domain, variables)
        if scales is None:
            logger.info(
                "render_skipped_degenerate",
                extra={"view_id": self.id, "y_attribute": self.y_attribute, "n_records": len(data)},
            )
            return None

        rng = np.random.default_rng(state.config.seed)
        layout = self.compute_layout(data, scales, variables, rng)

        diff = reconcile(surface.primitives, layout.primitives())
        surface.apply(diff)

        state.dataset = data
        state.controller = controller
        state.scales = scales
        state.layout = layout
        state.variables = variables
        state.last_diff = diff

        # click handlers follow the latest controller
        surface.on("click.select", self._on_click)
        if isinstance(self.brush, LiveBrush):
            self.brush.extent = (surface.inner_width, surface.inner_height)

        self.lifecycle = ViewLifecycle.RENDERED
        self._apply_highlight()

        logger.info(
            "render_complete",
            extra={
                "view_id": self.id,
                "n_points": len(layout.points),
                "added": len(diff.added),
                "updated": len(diff.updated),
                "removed": len(diff.removed),
            },
        )
        return diff

    # ------------------------------------------------------------------
    # Highlight
    # ------------------------------------------------------------------
    def highlight(self, selection: Union[SelectionSet, Sequence[Record], None]) -> None:
        """
        Opacity/stroke pass over existing primitives; geometry is never touched.
        """
        self.selection = SelectionSet.coerce(selection)
        if self.surface is not None:
            self._apply_highlight()

    def _apply_highlight(self) -> None:
        surface = self.surface
        sel = self.selection
        hit_groups = set()

        for p in surface.points():
            if not sel:
                surface.set_style(p.key, opacity=self.default_opacity, stroke=None, stroke_width=0.0)
            elif p.record in sel:
                surface.set_style(
                    p.key,
                    opacity=1.0,
                    stroke=self.selected_stroke,
                    stroke_width=self.selected_stroke_width,
                )
                hit_groups.add((p.variable, p.category))
            else:
                surface.set_style(p.key, opacity=self.dimmed_opacity, stroke=None, stroke_width=0.0)

        for v in surface.violins():
            if not sel:
                opacity = v.opacity
            else:
                opacity = 0.95 if (v.variable, v.category) in hit_groups else 0.25
            surface.set_style(v.key, opacity=opacity)

    # ------------------------------------------------------------------
    # Brushing
    # ------------------------------------------------------------------
    def _make_brush(self) -> Union[LiveBrush, MultiRectBrush]:
        surface = self.surface

        def points():
            return surface.points() if not surface.destroyed else iter(())

        if self.brush_mode == "live":
            return LiveBrush(
                points,
                self._report_brush,
                extent=(surface.inner_width, surface.inner_height),
                axis=self.brush_axis,
            )
        return MultiRectBrush(points, self._report_brush)

    def set_brush_mode(self, mode: str) -> None:
        """
        Switch between live and multi-rectangle brushing. Existing brushes are cleared.
        """
        if mode not in BRUSH_MODES:
            raise ValueError(f"Unknown brush mode '{mode}'")
        if mode == self.brush_mode:
            return
        if self.brush is not None:
            self.brush.clear()
        self.brush_mode = mode
        if self.surface is not None:
            self.brush = self._make_brush()
            self._sync_overlays()

    def clear_all_brushes(self) -> None:
        if self.brush is None:
            return
        self.brush.clear()
        self._sync_overlays()

    def remove_brush(self, rect_id: int) -> None:
        """
        Drop one committed rectangle (multi mode); the selection shrinks to the rest.
        """
        if not isinstance(self.brush, MultiRectBrush):
            return
        self.brush.remove(rect_id)
        self._sync_overlays()

    def _report_brush(self, records: List[Record]) -> None:
        controller = self.state.controller if self.state is not None else None
        if controller is not None:
            controller.on_brush_select(records)

    def _bind_listeners(self) -> None:
        surface = self.surface
        surface.on("pointerdown.brush", self._on_pointer_down)
        surface.on("pointermove.brush", self._on_pointer_move)
        surface.on("pointerup.brush", self._on_pointer_up)
        surface.on("click.select", self._on_click)

    def _on_pointer_down(self, event: PointerEvent) -> None:
        if isinstance(self.brush, LiveBrush):
            self.brush.start(event.x, event.y, event.button)
        else:
            self.brush.pointer_down(event.x, event.y, event.button)

    def _on_pointer_move(self, event: PointerEvent) -> None:
        if isinstance(self.brush, LiveBrush):
            self.brush.move(event.x, event.y)
        else:
            self.brush.pointer_move(event.x, event.y)

    def _on_pointer_up(self, event: PointerEvent) -> None:
        if isinstance(self.brush, LiveBrush):
            self.brush.end(event.x, event.y)
        else:
            self.brush.pointer_up(event.x, event.y)
        self._sync_overlays()

    def _on_click(self, event: PointerEvent) -> None:
        prim = self.surface.primitives.get(event.target) if event.target else None
        if not isinstance(prim, PointPrimitive):
            return
        controller = self.state.controller if self.state is not None else None
        if controller is not None:
            controller.on_point_click(prim.record)

    def _sync_overlays(self) -> None:
        if self.surface is None or self.brush is None:
            return
        if isinstance(self.brush, MultiRectBrush):
            overlays = {f"brush_{c.id}": c.rect for c in self.brush.committed}
        else:
            overlays = {"brush_live": r for r in self.brush.rects}
        self.surface.set_overlays(overlays)

    def brush_range_label(self) -> Optional[str]:
        """
        y-value range covered by the live brush, e.g. "1,750,000 - 4,200,000".
        """
        if not isinstance(self.brush, LiveBrush) or self.brush.rect is None:
            return None
        if self.state is None or self.state.scales is None:
            return None
        y = self.state.scales.y
        lo, hi = y.invert(self.brush.rect.y2), y.invert(self.brush.rect.y)
        return f"{lo:,.0f} - {hi:,.0f}"

    # ------------------------------------------------------------------
    # Figure output
    # ------------------------------------------------------------------
    def render_figure(self, title: Optional[str] = None) -> go.Figure:
        """
        Plotly figure of the current surface. Axes are the surface's inner pixel
        space (y pointing down), so selection/shape coordinates coming back from
        plotly are pixel coordinates.
        """
        surface = self.surface
        if surface is None or self.lifecycle is not ViewLifecycle.RENDERED:
            return self.empty_figure(f"{self.label}: no data to show")

        fig = go.Figure()

        for v in surface.violins():
            xs, ys = v.path()
            fig.add_trace(
                go.Scatter(
                    x=xs,
                    y=ys,
                    mode="lines",
                    fill="toself",
                    fillcolor=v.fill,
                    line=dict(color=v.stroke, width=1, shape="spline"),
                    opacity=surface.style(v.key).opacity,
                    hoverinfo="skip",
                    showlegend=False,
                    name=v.key,
                )
            )

        for name, points in self._point_groups(surface).items():
            styles = [surface.style(p.key) for p in points]
            fig.add_trace(
                go.Scatter(
                    x=[p.x for p in points],
                    y=[p.y for p in points],
                    mode="markers",
                    name=name,
                    customdata=[p.key for p in points],
                    text=[self._hover_text(p) for p in points],
                    hoverinfo="text",
                    marker=dict(
                        color=points[0].color,
                        size=points[0].size,
                        symbol=points[0].shape,
                        opacity=[s.opacity for s in styles],
                        line=dict(
                            color=[s.stroke or TRANSPARENT for s in styles],
                            width=[s.stroke_width for s in styles],
                        ),
                    ),
                )
            )

        shapes = [
            dict(
                type="line",
                x0=sep.x,
                x1=sep.x,
                y0=sep.y1,
                y1=sep.y2,
                line=dict(color="#ccc", dash="dash", width=1),
                opacity=0.7,
                layer="below",
            )
            for sep in self._separators(surface)
        ]
        shapes += [
            dict(
                type="rect",
                x0=r.x,
                x1=r.x2,
                y0=r.y,
                y1=r.y2,
                fillcolor=BRUSH_FILL,
                line=dict(color=BRUSH_LINE, width=1.2),
                editable=self.brush_mode == "multi",
            )
            for r in surface.overlays.values()
        ]

        axes = self.axis_layout()
        left, top = surface.transform or (0.0, 0.0)
        fig.update_layout(
            title=title or self.label,
            width=surface.width,
            height=surface.height,
            margin=dict(
                l=left,
                t=top,
                r=surface.width - surface.inner_width - left,
                b=surface.height - surface.inner_height - top,
            ),
            xaxis=dict(
                range=[0, surface.inner_width],
                showgrid=False,
                zeroline=False,
                **axes.get("xaxis", {}),
            ),
            yaxis=dict(
                range=[surface.inner_height, 0],
                showgrid=False,
                zeroline=False,
                visible=self.show_y_axis,
                **axes.get("yaxis", {}),
            ),
            shapes=shapes,
            dragmode="select" if self.brush_mode == "live" else "drawrect",
            newshape=dict(fillcolor=BRUSH_FILL, line=dict(color=BRUSH_LINE, width=1.2)),
            clickmode="event",
            plot_bgcolor="white",
            uirevision=self.id,
        )
        return fig

    def _point_groups(self, surface: Surface) -> Dict[str, List[PointPrimitive]]:
        labels = {}
        if self.state is not None:
            labels = {v.name: v.display_label for v in self.state.variables}
        groups: Dict[str, List[PointPrimitive]] = {}
        for p in surface.points():
            name = labels.get(p.variable, p.variable) if p.variable else self.label
            groups.setdefault(name, []).append(p)
        return groups

    @staticmethod
    def _separators(surface: Surface):
        return [p for p in surface.primitives.values() if isinstance(p, Separator)]

    def _hover_text(self, p: PointPrimitive) -> str:
        price = p.record.number(self.y_attribute)
        parts = [f"#{p.record.index}", f"{self.y_attribute}: {price:,.0f}"]
        if p.variable:
            parts.append(f"{p.variable}: {p.record.get(p.variable)}")
        return "<br>".join(parts)

    @staticmethod
    def empty_figure(message: str) -> go.Figure:
        """
        Standardised 'no data' figure used by all views.
        """
        fig = go.Figure()
        fig.update_layout(
            title=message,
            xaxis={"visible": False},
            yaxis={"visible": False},
        )
        return fig
