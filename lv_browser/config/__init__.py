"""
JSON configuration: global.json plus one file per linked view
"""

from .loader import load_global_config
from .model import GlobalConfig, ViewSpecConfig

__all__ = ["load_global_config", "GlobalConfig", "ViewSpecConfig"]
