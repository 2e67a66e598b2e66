from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dcc, html

from lv_browser.ui.ids import brush_mode_id, brush_range_id, view_graph_id
from lv_browser.ui.session import LinkedViewSession

BRUSH_MODE_OPTIONS = [
    {"label": "Live brush", "value": "live"},
    {"label": "Multi-rect", "value": "multi"},
]


def build_view_card(session: LinkedViewSession, view_id: str) -> dbc.Card:
    slot = session.slot(view_id)
    width, height = slot.config.resolved_size()

    return dbc.Card(
        [
            dbc.CardHeader(
                html.Div(
                    [
                        html.Strong(slot.title),
                        dbc.RadioItems(
                            id=brush_mode_id(view_id),
                            options=BRUSH_MODE_OPTIONS,
                            value=slot.view.brush_mode,
                            inline=True,
                            className="ms-auto lvb-brush-mode",
                        ),
                    ],
                    className="d-flex align-items-center",
                ),
                className="p-2",
            ),
            dbc.CardBody(
                [
                    dcc.Graph(
                        id=view_graph_id(view_id),
                        figure=session.figure(view_id),
                        style={"width": f"{width:.0f}px", "height": f"{height:.0f}px"},
                        config={
                            "displaylogo": False,
                            "scrollZoom": False,
                            "modeBarButtonsToAdd": ["drawrect", "eraseshape", "select2d"],
                        },
                    ),
                    html.Small(id=brush_range_id(view_id), className="text-muted lvb-brush-range"),
                ],
                className="lvb-view-body",
            ),
        ],
        className="lvb-view-card mb-3",
    )
