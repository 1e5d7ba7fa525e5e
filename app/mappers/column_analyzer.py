"""
app/mappers/column_analyzer.py

Value-shape classification and summary statistics for uploaded columns.
"""

from __future__ import annotations

import logging
from typing import Hashable, Sequence

import numpy as np

from app.domain.analytics import ColumnStats, ColumnType, Row, Scalar
from app.validators.scalar_parser import is_date_string, to_number

logger = logging.getLogger(__name__)

DEFAULT_TYPE_THRESHOLD = 0.8
MAX_SAMPLE_VALUES = 5


class ColumnNotFoundError(ValueError):
    """
    Raised when a column is analyzed that no row contains.
    """

    def __init__(self, column: str) -> None:
        super().__init__(f"Column {column!r} is not present in any row.")
        self.column = column


def collect_columns(rows: Sequence[Row]) -> list[str]:
    """
    Return every column name present in the rows, in first-seen order.
    """

    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            if key not in seen:
                seen[key] = None
    return list(seen)


def analyze_column(
    rows: Sequence[Row],
    column: str,
    *,
    type_threshold: float = DEFAULT_TYPE_THRESHOLD,
) -> ColumnStats:
    """
    Classify one column and summarise its values.

    Classification order (first match wins):

    1. numeric   - at least ``type_threshold`` of non-null values coerce to a number
    2. date      - at least ``type_threshold`` of non-null values are date strings
    3. categorical

    A column with no non-null values is categorical with zero unique values.
    """

    if not any(column in row for row in rows):
        raise ColumnNotFoundError(column)

    values: list[Scalar] = [row[column] for row in rows if row.get(column) is not None]
    unique_value_count = len({_hashable(value) for value in values})
    sample_values = tuple(values[:MAX_SAMPLE_VALUES])

    if not values:
        return ColumnStats(
            name=column,
            type=ColumnType.CATEGORICAL,
            unique_value_count=0,
        )

    required = type_threshold * len(values)

    numbers = [number for number in (to_number(value) for value in values) if number is not None]
    if numbers and len(numbers) >= required:
        array = np.asarray(numbers, dtype=np.float64)
        stats = ColumnStats(
            name=column,
            type=ColumnType.NUMERIC,
            unique_value_count=unique_value_count,
            sample_values=sample_values,
            min_value=float(array.min()),
            max_value=float(array.max()),
            avg=float(array.mean()),
        )
        logger.debug("Column %r typed numeric (%d/%d values)", column, len(numbers), len(values))
        return stats

    date_count = sum(1 for value in values if is_date_string(value))
    if date_count and date_count >= required:
        logger.debug("Column %r typed date (%d/%d values)", column, date_count, len(values))
        return ColumnStats(
            name=column,
            type=ColumnType.DATE,
            unique_value_count=unique_value_count,
            sample_values=sample_values,
        )

    return ColumnStats(
        name=column,
        type=ColumnType.CATEGORICAL,
        unique_value_count=unique_value_count,
        sample_values=sample_values,
    )


def _hashable(value: Scalar) -> Hashable:
    # Keep 1, 1.0 and True distinct so counts reflect raw values.
    try:
        hash(value)
    except TypeError:
        return (type(value).__name__, repr(value))
    return (type(value).__name__, value)
