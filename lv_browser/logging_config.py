from __future__ import annotations

import logging
import os
from typing import Iterable, Optional, Union

from pythonjsonlogger import jsonlogger

# Per-request access lines from the Dash dev server drown out render/selection events
NOISY_LOGGERS = ("werkzeug",)


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = os.getenv("LV_BROWSER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def configure_logging(
        level: Union[int, str, None] = None,
        force_format: Optional[str] = None,
        quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure the root logger for the app

    Format, in order of precedence:
        1) force_format argument ("json" or "plain")
        2) env var LV_BROWSER_LOG_FORMAT
        3) "json"

    Level comes from `level` or LV_BROWSER_LOG_LEVEL (default INFO). Loggers in
    `quiet` are raised to WARNING. Existing root handlers are replaced so
    calling this twice never duplicates output.
    """
    format_mode = (force_format or os.getenv("LV_BROWSER_LOG_FORMAT", "json")).lower()

    if format_mode == "plain":
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        )
    else:
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    root.handlers.clear()
    root.addHandler(handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
