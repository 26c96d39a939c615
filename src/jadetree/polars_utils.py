"""Utility functions for feeding Polars DataFrames into a tree."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

import polars as pl

from jadetree.exceptions import ColumnsNotFoundError, DuplicateColumnsError


def ensure_dataframe(frame: pl.DataFrame | pl.LazyFrame) -> pl.DataFrame:
    """Collect a LazyFrame; return a DataFrame unchanged.

    Args:
        frame (pl.DataFrame | pl.LazyFrame): The frame to materialize.

    Returns:
        pl.DataFrame: The eager frame.
    """
    if isinstance(frame, pl.LazyFrame):
        return frame.collect()
    return frame


def iter_instances(
    frame: pl.DataFrame | pl.LazyFrame,
    columns: Sequence[str] | None = None,
) -> Iterator[dict[str, Any]]:
    """Return an iterator over the rows of a frame as column-name to value dicts.

    Columns are validated before the iterator is returned, so invalid input
    fails before any row is consumed.

    Args:
        frame (pl.DataFrame | pl.LazyFrame): The rows to iterate.
        columns (Sequence[str] | None): Columns to keep in each instance. If
            None, all columns are kept.

    Returns:
        Iterator[dict[str, Any]]: One dict per row, in row order.

    Raises:
        ValueError: If `columns` is empty.
        DuplicateColumnsError: If `columns` contains duplicates.
        ColumnsNotFoundError: If any of `columns` is missing from the frame.

    Examples:
        >>> df = pl.DataFrame({"a": [1, 2], "b": ["x", "y"]})
        >>> list(iter_instances(df, columns=["b"]))
        [{'b': 'x'}, {'b': 'y'}]
    """
    df = ensure_dataframe(frame)
    if columns is not None:
        _validate_columns(columns, df.columns)
        df = df.select(columns)
    return df.iter_rows(named=True)


def _validate_columns(columns: Sequence[str], df_columns: Sequence[str]) -> None:
    """Validate that columns exist in the DataFrame and contain no duplicates.

    Args:
        columns (Sequence[str]): Column names to validate.
        df_columns (Sequence[str]): Column names present in the DataFrame.

    Raises:
        ValueError: If columns list is empty.
        DuplicateColumnsError: If columns contain duplicates.
        ColumnsNotFoundError: If any columns do not exist in the DataFrame.
    """
    if len(columns) == 0:
        msg = "columns list must not be empty; pass None to include all columns"
        raise ValueError(msg)
    if len(columns) != len(set(columns)):
        raise DuplicateColumnsError(columns=list(columns))
    extra_columns = set(columns) - set(df_columns)
    if extra_columns:
        raise ColumnsNotFoundError(
            missing_columns=sorted(extra_columns),
            available_columns=list(df_columns),
        )
