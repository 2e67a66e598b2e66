from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import html

from lv_browser.config.model import GlobalConfig
from lv_browser.core.dataset import Dataset
from lv_browser.ui.ids import IDs


def build_navbar(global_config: GlobalConfig, dataset: Dataset) -> dbc.Navbar:
    title = global_config.ui_title
    subtitle = f"{dataset.name}: {len(dataset)} records, y = {global_config.y_attribute}"

    return dbc.Navbar(
        dbc.Container(
            fluid=True,
            children=[
                html.Div(
                    [
                        html.H2(title, className="mb-0"),
                        html.Small(
                            subtitle,
                            className="text-muted",
                            id=IDs.Control.NAVBAR_SUBTITLE,
                        ),
                    ],
                    className="d-flex flex-column justify-content-center",
                ),
                dbc.Button(
                    "Clear selections",
                    id=IDs.Control.CLEAR_SELECTIONS_BTN,
                    color="secondary",
                    size="sm",
                    className="ms-auto",
                ),
            ],
        ),
        dark=False,
        className="shadow-sm lvb-navbar",
    )
