from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import dash
from dash import ALL, Input, Output

from lv_browser.ui.ids import IDs, brush_mode_id, brush_range_id, view_graph_id
from lv_browser.ui.session import LinkedViewSession

if TYPE_CHECKING:
    from lv_browser.ui.config import AppConfig

logger = logging.getLogger(__name__)


def apply_interaction(
    session: LinkedViewSession,
    trigger: Any,
    prop: Optional[str],
    value: Any,
) -> bool:
    """
    Route one Dash trigger to the session. Returns False when nothing changed.

    trigger is the triggering component id: the clear button's id, or a
    pattern id dict {"type": ..., "index": view_id}.
    """
    if trigger == IDs.Control.CLEAR_SELECTIONS_BTN:
        session.clear()
        return True

    if not isinstance(trigger, dict):
        return False

    view_id = trigger.get("index")
    kind = trigger.get("type")

    if kind == IDs.Pattern.BRUSH_MODE:
        session.set_brush_mode(view_id, value)
        return True

    if kind != IDs.Pattern.VIEW_GRAPH:
        return False

    if prop == "clickData":
        return session.handle_click(view_id, value)
    if prop == "selectedData":
        return session.handle_box_select(view_id, value)
    if prop == "relayoutData":
        return session.handle_relayout(view_id, value)
    return False


def register_selection_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    session = ctx.session

    # ---------------------------------------------------------
    # Any interaction in any view -> every figure + status bar
    # ---------------------------------------------------------
    @app.callback(
        Output(view_graph_id(ALL), "figure"),
        Output(brush_range_id(ALL), "children"),
        Output(IDs.Control.STATUS_BAR, "children"),
        Input(view_graph_id(ALL), "clickData"),
        Input(view_graph_id(ALL), "selectedData"),
        Input(view_graph_id(ALL), "relayoutData"),
        Input(brush_mode_id(ALL), "value"),
        Input(IDs.Control.CLEAR_SELECTIONS_BTN, "n_clicks"),
        prevent_initial_call=True,
    )
    def on_view_interaction(_clicks, _selected, _relayouts, _modes, _n_clear):
        cb = dash.callback_context
        if not cb.triggered:
            raise dash.exceptions.PreventUpdate

        prop = cb.triggered[0]["prop_id"].rsplit(".", 1)[-1]
        value = cb.triggered[0]["value"]

        try:
            changed = apply_interaction(session, cb.triggered_id, prop, value)
        except Exception:
            logger.exception(
                "Error while handling view interaction",
                extra={"trigger": str(cb.triggered_id), "prop": prop},
            )
            changed = True

        if not changed:
            raise dash.exceptions.PreventUpdate

        return session.figures(), session.brush_labels(), session.status_text()
