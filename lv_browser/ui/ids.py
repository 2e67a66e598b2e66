from __future__ import annotations

__all__ = ["IDs", "view_graph_id", "brush_mode_id", "brush_range_id"]


class IDs:
    class Control:
        CLEAR_SELECTIONS_BTN = "clear-selections-btn"
        STATUS_BAR = "status-bar"
        NAVBAR_SUBTITLE = "navbar-subtitle"

    class Pattern:
        # pattern-matching "type" strings, one component per view
        VIEW_GRAPH = "view-graph"
        BRUSH_MODE = "brush-mode"
        BRUSH_RANGE = "brush-range"


def view_graph_id(view_id) -> dict:
    return {"type": IDs.Pattern.VIEW_GRAPH, "index": view_id}


def brush_mode_id(view_id) -> dict:
    return {"type": IDs.Pattern.BRUSH_MODE, "index": view_id}


def brush_range_id(view_id) -> dict:
    return {"type": IDs.Pattern.BRUSH_RANGE, "index": view_id}
