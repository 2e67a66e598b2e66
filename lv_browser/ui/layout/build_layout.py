from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import html

from lv_browser.ui.ids import IDs
from lv_browser.ui.layout.build_navbar import build_navbar
from lv_browser.ui.layout.build_view_card import build_view_card


def build_layout(ctx: "AppConfig"):
    session = ctx.session
    navbar = build_navbar(ctx.global_config, ctx.dataset)

    if not session.view_ids:
        body = dbc.Alert("No views configured. Add view files under views/ in the config root.", color="warning")
    else:
        body = dbc.Row(
            [dbc.Col(build_view_card(session, view_id), xl=6) for view_id in session.view_ids],
            className="gx-3 mt-3",
        )

    return dbc.Container(
        fluid=True,
        className="lvb-root",
        children=[
            navbar,
            body,
            html.Div(
                session.status_text(),
                id=IDs.Control.STATUS_BAR,
                className="lvb-status-bar text-muted small mt-2",
            ),
        ],
    )
