from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from lv_browser.core.dataset import Record
from lv_browser.core.view_config import VariableSpec

logger = logging.getLogger(__name__)

HighlightFn = Callable[["SelectionSet"], None]


class SelectionSet(Mapping[int, Record]):
    """
    Immutable record index -> Record mapping used as a de-duplicating set.

    Membership checks accept a Record or a bare index; two records with the same
    index are the same entity. A new SelectionSet is built for every change.
    """

    __slots__ = ("_items",)

    def __init__(self, records: Iterable[Record] = ()) -> None:
        items: Dict[int, Record] = {}
        for rec in records:
            items[rec.index] = rec
        self._items = items

    def __getitem__(self, index: int) -> Record:
        return self._items[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Record):
            return item.index in self._items
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SelectionSet):
            return self._items.keys() == other._items.keys()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SelectionSet({sorted(self._items)})"

    @property
    def indices(self) -> FrozenSet[int]:
        return frozenset(self._items)

    def records(self) -> Tuple[Record, ...]:
        return tuple(self._items.values())

    @classmethod
    def coerce(cls, selection: Union["SelectionSet", Iterable[Record], None]) -> "SelectionSet":
        if selection is None:
            return EMPTY_SELECTION
        if isinstance(selection, SelectionSet):
            return selection
        return cls(selection)


EMPTY_SELECTION = SelectionSet()


def merge(selections_by_view: Mapping[str, Iterable[Record]]) -> SelectionSet:
    """
    Union of every view's selection, keyed by record index.

    Only unions; no view's selection ever removes records selected elsewhere.
    """
    def chained() -> Iterator[Record]:
        for records in selections_by_view.values():
            yield from records

    return SelectionSet(chained())


class SelectionCoordinator:
    """
    Holds each view's own selection and the merged result.

    Each update replaces the reporting view's selection, recomputes the merge and
    pushes it to every registered view. Updates are serialised with a lock and
    the merged SelectionSet is swapped in whole, so readers always see a
    complete snapshot. Highlight callbacks run outside the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_view: Dict[str, Tuple[Record, ...]] = {}
        self._highlights: Dict[str, HighlightFn] = {}
        self._merged: SelectionSet = EMPTY_SELECTION

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self, view_id: str, highlight: Optional[HighlightFn] = None) -> None:
        with self._lock:
            self._by_view.setdefault(view_id, ())
            if highlight is not None:
                self._highlights[view_id] = highlight

    def unregister(self, view_id: str) -> None:
        with self._lock:
            self._by_view.pop(view_id, None)
            self._highlights.pop(view_id, None)
            self._merged = merge(self._by_view)

    @property
    def view_ids(self) -> Tuple[str, ...]:
        return tuple(self._by_view)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @property
    def selection(self) -> SelectionSet:
        return self._merged

    def selection_for(self, view_id: str) -> Tuple[Record, ...]:
        return self._by_view.get(view_id, ())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def update(self, view_id: str, records: Iterable[Record]) -> SelectionSet:
        with self._lock:
            own = tuple(records)
            self._by_view[view_id] = own
            merged = merge(self._by_view)
            self._merged = merged
            targets = list(self._highlights.items())

        logger.info(
            "selection_update",
            extra={
                "view_id": view_id,
                "n_view_selected": len(own),
                "n_selected": len(merged),
            },
        )
        self._broadcast(merged, targets)
        return merged

    def clear_view(self, view_id: str) -> SelectionSet:
        return self.update(view_id, ())

    def clear_all(self) -> SelectionSet:
        with self._lock:
            self._by_view = {view_id: () for view_id in self._by_view}
            self._merged = EMPTY_SELECTION
            targets = list(self._highlights.items())

        logger.info("selection_clear_all", extra={"n_views": len(targets)})
        self._broadcast(EMPTY_SELECTION, targets)
        return EMPTY_SELECTION

    def _broadcast(self, merged: SelectionSet, targets) -> None:
        for view_id, highlight in targets:
            try:
                highlight(merged)
            except Exception:
                logger.exception("Highlight failed for view %s", view_id)

    def controller_for(
        self,
        view_id: str,
        shared_domain: Optional[Tuple[float, float]] = None,
        variables: Sequence[VariableSpec] = (),
    ) -> "ViewSelectionController":
        self.register(view_id)
        return ViewSelectionController(
            coordinator=self,
            view_id=view_id,
            shared_domain=shared_domain,
            variables=tuple(variables),
        )


@dataclass
class ViewSelectionController:
    """
    ViewController that reports one view's interactions to the coordinator.

    A click replaces this view's selection with the clicked record; other views'
    selections stay untouched and are still part of the merge.
    """
    coordinator: SelectionCoordinator
    view_id: str
    shared_domain: Optional[Tuple[float, float]] = None
    variables: Sequence[VariableSpec] = field(default_factory=tuple)

    def on_point_click(self, record: Record) -> None:
        self.coordinator.update(self.view_id, [record])

    def on_brush_select(self, records: Sequence[Record]) -> None:
        self.coordinator.update(self.view_id, records)
