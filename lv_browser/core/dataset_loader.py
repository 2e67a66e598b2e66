from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from lv_browser.core.dataset import INDEX_COLUMN, Dataset
from lv_browser.core.exceptions import DatasetSchemaError

logger = logging.getLogger(__name__)


def load_csv(path: Path | str, name: Optional[str] = None) -> Dataset:
    """
    Load a CSV file into a Dataset.

    Each row gets `index = row number`, assigned once here and never reused.
    Cells that don't parse as numbers are kept as-is; numeric access turns them
    into NaN later on, so a malformed cell never stops the load.

    :raises FileNotFoundError: if the file does not exist.
    :raises DatasetSchemaError: if the file has no columns.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found at {path}")

    try:
        frame = pd.read_csv(path, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise DatasetSchemaError(f"No columns to parse in {path}") from e

    if INDEX_COLUMN in frame.columns:
        logger.warning(
            "Column %r in %s shadows the record index; it will be dropped",
            INDEX_COLUMN,
            path,
        )
        frame = frame.drop(columns=[INDEX_COLUMN])

    frame.index = pd.RangeIndex(len(frame), name=INDEX_COLUMN)

    logger.info(
        "Loaded dataset",
        extra={"path": str(path), "n_records": len(frame), "columns": list(frame.columns)},
    )
    return Dataset(frame, name=name or path.stem)
