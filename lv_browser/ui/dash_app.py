from __future__ import annotations

import logging
from pathlib import Path

import dash_bootstrap_components as dbc
from dash import Dash

from lv_browser.config.loader import load_global_config
from lv_browser.core.dataset_loader import load_csv
from lv_browser.core.exceptions import ConfigError
from lv_browser.core.view_registry import ViewRegistry
from lv_browser.ui.callbacks.callbacks_selection import register_selection_callbacks
from lv_browser.ui.config import AppConfig
from lv_browser.ui.layout.build_layout import build_layout
from lv_browser.ui.session import LinkedViewSession

logger = logging.getLogger(__name__)


def build_view_registry() -> ViewRegistry:
    from lv_browser.views import DualScatterView, ScatterView, ViolinScatterView

    registry = ViewRegistry()
    registry.register(ScatterView)
    registry.register(DualScatterView)
    registry.register(ViolinScatterView)
    return registry


def create_dash_app(config_root: Path | str = Path("config")) -> Dash:
    config_root = Path(config_root)

    # 1) Load config + data
    global_config = load_global_config(config_root)
    if global_config.data_path is None:
        raise ConfigError(f"global.json in {config_root} has no data_path")
    dataset = load_csv(global_config.data_path)

    # 2) Views, linked through one session
    registry = build_view_registry()
    session = LinkedViewSession(global_config, dataset, registry)

    # 3) App context
    ctx = AppConfig(
        config_root=config_root,
        global_config=global_config,
        dataset=dataset,
        registry=registry,
        session=session,
    )
    ctx.validate()

    assets_path = Path(__file__).parent / "assets"

    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
        assets_folder=str(assets_path),
    )
    app.title = global_config.ui_title
    app.layout = build_layout(ctx)

    register_selection_callbacks(app, ctx)

    logger.info(
        "Dash app created",
        extra={"config_root": str(config_root), "view_ids": session.view_ids},
    )
    return app
