from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from lv_browser.core.base_view import BaseView
from lv_browser.core.dataset import Dataset
from lv_browser.core.layout import Layout, layout_scatter
from lv_browser.core.scales import ScatterScales, build_scatter_scales
from lv_browser.core.surface import Margin
from lv_browser.core.view_config import VariableSpec


class ScatterView(BaseView):
    """
    Plain x/y scatter, one point per record keyed by the record index.
    """

    id = "scatter"
    label = "Price vs Area"

    margin = Margin(top=40, right=10, bottom=50, left=100)
    default_opacity = 0.3
    point_color = "#4A90E2"

    def __init__(
        self,
        x_attribute: str = "area",
        y_attribute: str = "price",
        brush_mode: str = "live",
        brush_axis: str = "xy",
        show_y_axis: bool = True,
    ) -> None:
        super().__init__(
            y_attribute=y_attribute,
            brush_mode=brush_mode,
            brush_axis=brush_axis,
            show_y_axis=show_y_axis,
        )
        self.x_attribute = x_attribute

    def compute_scales(
        self,
        data: Dataset,
        shared_domain: Optional[Tuple[float, float]],
        variables: Sequence[VariableSpec],
    ) -> Optional[ScatterScales]:
        return build_scatter_scales(
            data,
            [self.x_attribute],
            self.y_attribute,
            self.surface.inner_width,
            self.surface.inner_height,
            shared_domain=shared_domain,
        )

    def compute_layout(
        self,
        data: Dataset,
        scales: ScatterScales,
        variables: Sequence[VariableSpec],
        rng: np.random.Generator,
    ) -> Layout:
        return layout_scatter(data, scales, self.x_attribute, self.y_attribute, color=self.point_color)

    def axis_layout(self) -> Dict[str, Dict[str, Any]]:
        return _linear_axes(self.state.scales, self.x_attribute, self.y_attribute)


def _linear_axes(scales: ScatterScales, x_title: str, y_title: str) -> Dict[str, Dict[str, Any]]:
    x_ticks = scales.x.ticks()
    y_ticks = scales.y.ticks()
    return {
        "xaxis": {
            "tickmode": "array",
            "tickvals": [scales.x(t) for t in x_ticks],
            "ticktext": [f"{t:,g}" for t in x_ticks],
            "title": x_title,
        },
        "yaxis": {
            "tickmode": "array",
            "tickvals": [scales.y(t) for t in y_ticks],
            "ticktext": [f"{t:,.0f}" for t in y_ticks],
            "title": y_title,
        },
    }
