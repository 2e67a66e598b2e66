from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Generic, Mapping, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RenderDiff(Generic[T]):
    """
    Keyed reconciliation result (enter / update / exit).
    """
    added: Dict[str, T] = field(default_factory=dict)
    updated: Dict[str, T] = field(default_factory=dict)
    removed: Tuple[str, ...] = ()
    unchanged: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.removed)


def reconcile(old: Mapping[str, T], new: Mapping[str, T]) -> RenderDiff[T]:
    """
    Compare two key -> primitive mappings.

    - added: keys only in `new`
    - updated: keys in both whose primitive changed
    - removed: keys only in `old`
    - unchanged: keys in both with equal primitives
    """
    added: Dict[str, T] = {}
    updated: Dict[str, T] = {}
    unchanged = []

    for key, prim in new.items():
        if key not in old:
            added[key] = prim
        elif old[key] != prim:
            updated[key] = prim
        else:
            unchanged.append(key)

    removed = tuple(key for key in old if key not in new)
    return RenderDiff(added=added, updated=updated, removed=removed, unchanged=tuple(unchanged))
