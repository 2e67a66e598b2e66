"""
Entry point: `python app.py` for the dev server, `gunicorn app:server` in production.

Environment:
    LV_BROWSER_CONFIG_ROOT  config directory (default: ./config)
    PORT                    preferred port (default: 8050; the next free one is used if taken)
    DEBUG                   "1" enables Dash debug mode
"""
import logging
import os
import socket

from lv_browser.logging_config import configure_logging
from lv_browser.ui.dash_app import create_dash_app

configure_logging()
logger = logging.getLogger("lv_browser.app")

CONFIG_ROOT = os.getenv("LV_BROWSER_CONFIG_ROOT", "config")

app = create_dash_app(CONFIG_ROOT)
server = app.server


def find_free_port(start_port: int, attempts: int = 100) -> int:
    """First port from start_port on that nothing is listening on."""
    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            if s.connect_ex(("localhost", port)) != 0:
                return port
    return start_port


def main() -> None:
    preferred_port = int(os.getenv("PORT", "8050"))
    port = find_free_port(preferred_port)
    debug = os.getenv("DEBUG", "0") == "1"

    if port != preferred_port:
        logger.warning("Port %d is taken, starting on %d", preferred_port, port)

    logger.info("Starting server", extra={"port": port, "debug": debug, "config_root": CONFIG_ROOT})
    app.run(host="0.0.0.0", port=port, debug=debug)


if __name__ == "__main__":
    main()
