from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from lv_browser.config.model import GlobalConfig
from lv_browser.core.dataset import Dataset
from lv_browser.core.view_registry import ViewRegistry
from lv_browser.ui.session import LinkedViewSession


@dataclass
class AppConfig:
    """
    Shared state handed to layout builders and callback registration instead of
    module-level globals.
    """
    config_root: Path
    global_config: GlobalConfig
    dataset: Optional[Dataset] = None
    registry: Optional[ViewRegistry] = None
    session: Optional[LinkedViewSession] = None

    def validate(self) -> None:
        """Ensure all required services are attached before the app starts."""
        if self.dataset is None:
            raise RuntimeError("AppConfig.dataset must be initialized.")
        if self.registry is None:
            raise RuntimeError("AppConfig.registry must be initialized.")
        if self.session is None:
            raise RuntimeError("AppConfig.session must be initialized.")
