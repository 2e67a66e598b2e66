from .scatter_view import ScatterView
from .dual_scatter_view import DualScatterView
from .violin_scatter_view import ViolinScatterView

__all__ = ["ScatterView", "DualScatterView", "ViolinScatterView"]
