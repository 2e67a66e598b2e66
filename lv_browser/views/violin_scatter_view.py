from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from lv_browser.core.base_view import BaseView
from lv_browser.core.dataset import Dataset
from lv_browser.core.layout import Layout, layout_violin_scatter
from lv_browser.core.scales import (
    CATEGORY_DOMAIN,
    DEFAULT_BAND_PADDING,
    ViolinScales,
    build_violin_scales,
)
from lv_browser.core.surface import Margin
from lv_browser.core.view_config import VariableSpec


class ViolinScatterView(BaseView):
    """
    Violin + jittered scatter of price per room count.

    - One band per category (1..5 rooms)
    - Inside a band, one violin per variable (bedrooms / stories / bathrooms)
    - Points jittered horizontally by the local density so they fill the violin
    """

    id = "violin_scatter"
    label = "Price by Room Count"

    margin = Margin(top=20, right=16, bottom=40, left=120)
    default_opacity = 0.85
    default_variables = ("bedrooms", "stories", "bathrooms")

    def __init__(
        self,
        y_attribute: str = "price",
        brush_mode: str = "multi",
        brush_axis: str = "xy",
        show_y_axis: bool = False,
        band_padding: float = DEFAULT_BAND_PADDING,
        categories: Sequence[int] = CATEGORY_DOMAIN,
    ) -> None:
        super().__init__(
            y_attribute=y_attribute,
            brush_mode=brush_mode,
            brush_axis=brush_axis,
            show_y_axis=show_y_axis,
        )
        self.band_padding = band_padding
        self.categories = tuple(categories)

    def compute_scales(
        self,
        data: Dataset,
        shared_domain: Optional[Tuple[float, float]],
        variables: Sequence[VariableSpec],
    ) -> Optional[ViolinScales]:
        return build_violin_scales(
            data,
            self.y_attribute,
            self.surface.inner_width,
            self.surface.inner_height,
            shared_domain=shared_domain,
            padding=self.band_padding,
            categories=self.categories,
        )

    def compute_layout(
        self,
        data: Dataset,
        scales: ViolinScales,
        variables: Sequence[VariableSpec],
        rng: np.random.Generator,
    ) -> Layout:
        return layout_violin_scatter(
            data, scales, variables, self.y_attribute, rng, previous=self.surface.primitives
        )

    def axis_layout(self) -> Dict[str, Dict[str, Any]]:
        layout = self.state.layout
        scales: ViolinScales = self.state.scales
        y_ticks = scales.y.ticks()
        return {
            "xaxis": {
                "tickmode": "array",
                "tickvals": [t.x for t in layout.ticks],
                "ticktext": [t.text for t in layout.ticks],
                "title": "Rooms",
            },
            "yaxis": {
                "tickmode": "array",
                "tickvals": [scales.y(t) for t in y_ticks],
                "ticktext": [f"{t:,.0f}" for t in y_ticks],
            },
        }
