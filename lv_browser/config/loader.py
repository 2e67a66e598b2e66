from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from lv_browser.config.model import GlobalConfig, ViewSpecConfig, parse_size
from lv_browser.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

BRUSH_MODES = ("live", "multi")

# Used when the config root has no views/ directory: the housing layout of a
# price/area scatter next to the room-count violins.
DEFAULT_VIEWS: Tuple[Dict[str, Any], ...] = (
    {"id": "price_area", "view": "scatter", "x_attribute": "area", "brush_mode": "live"},
    {
        "id": "rooms",
        "view": "violin_scatter",
        "variables": ["bedrooms", "stories", "bathrooms"],
        "brush_mode": "multi",
    },
)


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open() as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    return raw


def _parse_domain(raw: Any, source: Path) -> Optional[Tuple[float, float]]:
    if raw is None:
        return None
    try:
        lo, hi = (float(v) for v in raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"shared_domain in {source} must be two numbers, got {raw!r}") from e
    if not lo < hi:
        raise ConfigError(f"shared_domain in {source} must be increasing, got {raw!r}")
    return (lo, hi)


def _validate_view(spec: ViewSpecConfig) -> None:
    where = spec.source_path or "default views"
    if "view" not in spec.raw:
        raise ConfigError(f"View entry {spec.index} in {where} has no 'view' type")
    if spec.brush_mode not in BRUSH_MODES:
        raise ConfigError(
            f"View '{spec.id}' in {where}: brush_mode must be one of {BRUSH_MODES}, got {spec.brush_mode!r}"
        )
    for var in spec.raw.get("variables", []):
        if not isinstance(var, str) and not (isinstance(var, dict) and "name" in var):
            raise ConfigError(f"View '{spec.id}' in {where}: invalid variable entry {var!r}")
    parse_size(spec.raw.get("size"), where)


def load_global_config(root: Path) -> GlobalConfig:
    """
    Load configuration from a directory using the multi-file layout.

    Expected structure:

        root/
            global.json
            views/
                01_scatter.json
                02_violins.json
                ...

    global.json holds the app-wide settings:

    - ui_title: title for the navbar, defaults to 'Linked Views Browser'
    - data_path: CSV file; relative paths are resolved against the config root
    - y_attribute: attribute shared by every view's y axis, defaults to 'price'
    - seed: jitter seed so re-renders are reproducible (optional)
    - shared_domain: fixed [lo, hi] y-domain (optional, computed from the data otherwise)
    - width / height: default view size

    Each file in 'views/' is parsed into a ViewSpecConfig, in file name order.

    :param root: Directory containing 'global.json' and optionally 'views/'.
    :return: A GlobalConfig instance.
    :raises FileNotFoundError: if global.json does not exist.
    :raises ConfigError: if any entry is malformed.
    """
    root = Path(root)
    logger.info(
        "Loading global config",
        extra={"config_root": str(root)},
    )

    global_path = root / "global.json"
    if not global_path.is_file():
        raise FileNotFoundError(f"File not found at {global_path}")

    raw_global = _read_json(global_path)

    views_dir = root / "views"
    views: List[ViewSpecConfig] = []
    if views_dir.is_dir():
        for idx, config_file in enumerate(sorted(views_dir.glob("*.json"))):
            views.append(ViewSpecConfig.from_raw(_read_json(config_file), source_path=config_file, index=idx))
    else:
        views = [ViewSpecConfig.from_raw(dict(raw), source_path=None, index=idx) for idx, raw in enumerate(DEFAULT_VIEWS)]

    seen = set()
    for spec in views:
        _validate_view(spec)
        if spec.id in seen:
            raise ConfigError(f"Duplicate view id '{spec.id}'")
        seen.add(spec.id)

    # Absolute paths are used as-is, relative ones resolve against the config root
    data_path_raw = raw_global.get("data_path")
    if data_path_raw is None:
        data_path = None
    else:
        data_path = Path(data_path_raw)
        if not data_path.is_absolute():
            data_path = (root / data_path).resolve()

    seed = raw_global.get("seed")
    if seed is not None and not isinstance(seed, int):
        raise ConfigError(f"seed in {global_path} must be an integer, got {seed!r}")

    config = GlobalConfig(
        ui_title=raw_global.get("ui_title", "Linked Views Browser"),
        data_path=data_path,
        views=views,
        y_attribute=raw_global.get("y_attribute", "price"),
        seed=seed,
        shared_domain=_parse_domain(raw_global.get("shared_domain"), global_path),
        default_size=parse_size(
            {k: raw_global[k] for k in ("width", "height") if k in raw_global}, global_path
        ),
    )

    logger.info(
        "Global config loaded",
        extra={"config_root": str(root), "n_views": len(views), "view_ids": [v.id for v in views]},
    )
    return config
