"""
Top-level package for the linked views browser.

This package exposes the core architecture (domain, views, UI adapters).
Most code should import from submodules such as:
    lv_browser.core
    lv_browser.views
    lv_browser.ui
"""

__all__: list[str] = []
