from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from lv_browser.core.exceptions import DatasetSchemaError

INDEX_COLUMN = "index"


@dataclass(frozen=True)
class Record:
    """
    One immutable row of the dataset.

    `index` is assigned once at ingestion and never reused. Equality and hashing
    only look at `index`, so two Record objects describing the same row are the
    same entity everywhere (selection sets, diffing, hit-testing).
    """
    index: int
    fields: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def number(self, name: str) -> float:
        """
        Numeric value of a field, NaN when missing or not parseable.
        """
        value = self.fields.get(name)
        if value is None or isinstance(value, bool):
            return math.nan
        try:
            return float(value)
        except (TypeError, ValueError):
            return math.nan

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]


RecordLike = Union[Record, Mapping[str, Any]]


def _as_record(item: RecordLike, position: int) -> Record:
    if isinstance(item, Record):
        return item
    data = dict(item)
    index = data.pop(INDEX_COLUMN, position)
    return Record(index=int(index), fields=MappingProxyType(data))


class Dataset:
    """
    Ordered sequence of Records, backed by a pandas DataFrame indexed by record index.

    Includes:
    - Stable record order (insertion order) for deterministic keying
    - Cached numeric coercion per attribute (non-numeric values become NaN)
    - Helpers for the numeric domains the views share
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        name: str = "dataset",
        records: Optional[Sequence[Record]] = None,
    ) -> None:
        if not frame.index.is_unique:
            raise DatasetSchemaError(f"Dataset '{name}' has duplicate record indices")

        self.name = name
        self.frame = frame
        self._records: Optional[Tuple[Record, ...]] = tuple(records) if records is not None else None
        self._numeric_cache: Dict[str, pd.Series] = {}

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------
    @classmethod
    def from_records(cls, items: Iterable[RecordLike], name: str = "dataset") -> "Dataset":
        """
        Build a Dataset from Records or plain mappings.

        Mappings may carry their own "index" key; otherwise the position is used.
        """
        records = [_as_record(item, i) for i, item in enumerate(items)]
        frame = pd.DataFrame(
            [dict(r.fields) for r in records],
            index=pd.Index([r.index for r in records], name=INDEX_COLUMN),
        )
        return cls(frame, name=name, records=records)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, name: str = "dataset") -> "Dataset":
        """
        Wrap a DataFrame. An explicit "index" column wins over the frame's own index.
        """
        if INDEX_COLUMN in frame.columns:
            frame = frame.set_index(INDEX_COLUMN)
        frame = frame.copy()
        frame.index = frame.index.astype(int)
        frame.index.name = INDEX_COLUMN
        return cls(frame, name=name)

    # -------------------------------------------------------------------------
    # Sequence protocol
    # -------------------------------------------------------------------------
    @property
    def records(self) -> Tuple[Record, ...]:
        if self._records is None:
            rows = self.frame.to_dict("records")
            self._records = tuple(
                Record(index=int(idx), fields=MappingProxyType(row))
                for idx, row in zip(self.frame.index, rows)
            )
        return self._records

    def __len__(self) -> int:
        return len(self.frame)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def is_empty(self) -> bool:
        return len(self.frame) == 0

    # -------------------------------------------------------------------------
    # Numeric access
    # -------------------------------------------------------------------------
    def numeric(self, attribute: str) -> pd.Series:
        """
        Float series for an attribute, NaN where the value is missing or non-numeric.
        """
        cached = self._numeric_cache.get(attribute)
        if cached is not None:
            return cached

        if attribute in self.frame.columns:
            series = pd.to_numeric(self.frame[attribute], errors="coerce").astype(float)
        else:
            series = pd.Series(np.nan, index=self.frame.index, dtype=float)

        self._numeric_cache[attribute] = series
        return series

    def valid_values(self, attribute: str) -> np.ndarray:
        values = self.numeric(attribute).to_numpy()
        return values[np.isfinite(values)]

    def price_domain(self, attribute: str = "price") -> Tuple[float, float]:
        """
        [min, max] of the finite values of an attribute, (0, 1) when there are none.
        """
        values = self.valid_values(attribute)
        if values.size == 0:
            return (0.0, 1.0)
        return (float(values.min()), float(values.max()))
