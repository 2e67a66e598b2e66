"""
Core domain layer: dataset abstraction, scales, density estimation, layout,
brushing, selection coordination, the view base class and the view registry
"""

from .dataset import Dataset, Record
from .base_view import BaseView
from .selection import SelectionCoordinator, SelectionSet
from .view_registry import ViewRegistry

__all__ = ["Dataset", "Record", "BaseView", "SelectionCoordinator", "SelectionSet", "ViewRegistry"]
