from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from lv_browser.core.base_view import BaseView
from lv_browser.core.dataset import Dataset
from lv_browser.core.layout import Layout, layout_dual_scatter
from lv_browser.core.scales import ScatterScales, build_scatter_scales
from lv_browser.core.surface import Margin
from lv_browser.core.view_config import VariableSpec
from lv_browser.views.scatter_view import _linear_axes


class DualScatterView(BaseView):
    """
    Price against two count attributes at once.

    Each record gets a circle for the first attribute and a square for the
    second, offset horizontally so records with equal counts don't overlap.
    """

    id = "dual_scatter"
    label = "Price vs Bedrooms / Bathrooms"

    margin = Margin(top=40, right=10, bottom=50, left=100)
    default_opacity = 0.85
    default_variables = ("bedrooms", "bathrooms")

    def compute_scales(
        self,
        data: Dataset,
        shared_domain: Optional[Tuple[float, float]],
        variables: Sequence[VariableSpec],
    ) -> Optional[ScatterScales]:
        if len(variables) < 2:
            raise ValueError(f"{self.id} needs two x attributes, got {len(variables)}")
        return build_scatter_scales(
            data,
            [v.name for v in variables[:2]],
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
        return layout_dual_scatter(data, scales, variables[:2], self.y_attribute)

    def axis_layout(self) -> Dict[str, Dict[str, Any]]:
        names = " / ".join(v.display_label for v in self.state.variables[:2])
        return _linear_axes(self.state.scales, names, self.y_attribute)
