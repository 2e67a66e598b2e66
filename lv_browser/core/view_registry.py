from __future__ import annotations
from typing import Any, Dict, List, Type

from .base_view import BaseView


class ViewRegistry:
    """
    Registry for view classes so the app can build its view cards from config

    Purpose:
    - Decouples the Dash layer from concrete views by exposing {@link create(view_id, **options)}
    - Lets the layout be driven by the registered views rather than hardcoded lists

    Design Notes:
    - Stores the subclasses of {@link BaseView}, not instances; every linked view gets its own
      renderer instance because each one owns its surface and brush
    - Enforces invariants:
        * only {@link BaseView} subclasses can be registered
        * each view 'id' is unique across the registry
    """

    def __init__(self):
        self._views: Dict[str, Type[BaseView]] = {}

    def register(self, view_cls: Type[BaseView]) -> None:
        """
        Register a {@link BaseView} with the registry

        :param view_cls: the subclass of {@link BaseView}

        Raises:
            TypeError: if view_cls is not a subclass of {@link BaseView}
            ValueError: if a view with same 'id' already exists
        """
        if not isinstance(view_cls, type) or not issubclass(view_cls, BaseView):
            raise TypeError(f"View '{getattr(view_cls, 'id', view_cls)}' must be a subclass of BaseView")

        if view_cls.id in self._views:
            raise ValueError(f"View '{view_cls.id}' already registered")

        self._views[view_cls.id] = view_cls

    def create(self, view_id: str, **options: Any) -> BaseView:
        """
        Instantiate a renderer for the given view_id.

        :param view_id: the id of the view
        :param options: constructor keyword arguments (y_attribute, brush_mode, ...)
        :return: the instantiated view

        Raises:
            KeyError: if no view with the given id exists in the registry
        """
        return self.get(view_id)(**options)

    def get(self, view_id: str) -> Type[BaseView]:
        try:
            return self._views[view_id]
        except KeyError:
            raise KeyError(f"View '{view_id}' not found")

    def all_classes(self) -> List[Type[BaseView]]:
        """
        :return list: the registered view classes, in registration order
        """
        return list(self._views.values())

    def __contains__(self, view_id: str) -> bool:
        return view_id in self._views
