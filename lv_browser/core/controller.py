from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Sequence, Tuple, runtime_checkable

from lv_browser.core.dataset import Record
from lv_browser.core.view_config import VariableSpec


@runtime_checkable
class ViewController(Protocol):
    """
    What a view reports user interaction to.

    shared_domain / variables override the values given at create() time when set.
    """

    shared_domain: Optional[Tuple[float, float]]
    variables: Sequence[VariableSpec]

    def on_point_click(self, record: Record) -> None: ...

    def on_brush_select(self, records: Sequence[Record]) -> None: ...


@dataclass
class CallbackController:
    """
    ViewController built from two plain callables.
    """
    point_click: Callable[[Record], None]
    brush_select: Callable[[Sequence[Record]], None]
    shared_domain: Optional[Tuple[float, float]] = None
    variables: Sequence[VariableSpec] = field(default_factory=tuple)

    def on_point_click(self, record: Record) -> None:
        self.point_click(record)

    def on_brush_select(self, records: Sequence[Record]) -> None:
        self.brush_select(records)


def inert_controller() -> CallbackController:
    """
    Controller for views rendered without anyone listening to them.
    """
    return CallbackController(point_click=lambda record: None, brush_select=lambda records: None)
