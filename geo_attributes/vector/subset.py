#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Attribute subsetting module.

This module selects rows and columns from simple feature tables. The active
geometry column is "sticky": it survives column selection unless it is
explicitly dropped, and the coordinate reference system travels with it.
"""
from typing import Any, Callable, Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from geo_attributes.core.config import SUBSET_CONFIG
from geo_attributes.core.logging_config import get_module_logger
from geo_attributes.utils.utils import (
    Frame, geometry_column, is_spatial, require_columns, timer
)

# Initialize logger
logger = get_module_logger(__name__)

Condition = Union[str, pd.Series, np.ndarray, Sequence[bool], Callable[[Frame], Any]]
RowSelector = Union[int, slice, Sequence[int]]


def select_columns(
    frame: Frame,
    columns: Union[str, Iterable[str]],
    keep_geometry: Optional[bool] = None
) -> Frame:
    """
    Select columns by name.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table.
    columns : str or iterable of str
        Names of the attribute columns to keep, in output order.
    keep_geometry : bool, optional
        Keep the active geometry column even if not listed. Defaults to
        ``SUBSET_CONFIG['keep_geometry']``. When False the result is a
        plain DataFrame.

    Returns
    -------
    DataFrame or GeoDataFrame
        New table with the selected columns.

    Raises
    ------
    KeyError
        If a column does not exist.
    """
    if keep_geometry is None:
        keep_geometry = SUBSET_CONFIG.get("keep_geometry", True)

    names = require_columns(frame, columns)
    geom = geometry_column(frame)

    if geom is None:
        return pd.DataFrame(frame[names]).copy()

    if not keep_geometry:
        names = [name for name in names if name != geom]
        logger.debug(f"Selecting {names} without geometry")
        return pd.DataFrame(frame[names]).copy()

    if geom not in names:
        names = names + [geom]

    result = frame[names].copy()
    logger.debug(f"Selected columns {names} (geometry '{geom}' kept)")
    return result


def drop_geometry(frame: Frame) -> pd.DataFrame:
    """
    Return the attribute table of `frame` without its geometry.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table. A plain DataFrame is copied unchanged.

    Returns
    -------
    DataFrame
        Attribute-only table.
    """
    geom = geometry_column(frame)
    if geom is None:
        return pd.DataFrame(frame).copy()
    return pd.DataFrame(frame.drop(columns=geom))


def _boolean_mask(frame: Frame, condition: Condition) -> np.ndarray:
    """Turn a condition into a boolean numpy mask aligned with `frame`."""
    if callable(condition) and not isinstance(condition, (pd.Series, np.ndarray)):
        condition = condition(frame)

    if isinstance(condition, pd.Series):
        if len(condition) != len(frame):
            raise ValueError(
                f"Condition has {len(condition)} values but the table has {len(frame)} rows"
            )
        if not condition.index.equals(frame.index) and set(condition.index) == set(frame.index):
            condition = condition.reindex(frame.index)
        values = condition.to_numpy(dtype=object)
    else:
        values = np.asarray(condition, dtype=object)
        if values.ndim != 1 or len(values) != len(frame):
            raise ValueError(
                f"Condition has shape {values.shape} but the table has {len(frame)} rows"
            )

    missing = pd.isna(values)
    mask = np.zeros(len(values), dtype=bool)
    mask[~missing] = values[~missing].astype(bool)
    return mask


@timer
def filter_rows(frame: Frame, condition: Condition) -> Frame:
    """
    Keep the rows that satisfy a condition.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table.
    condition : str, array-like of bool, or callable
        A pandas query string (e.g. ``"area_km2 < 10000"``), a boolean
        mask with one value per row, or a function that receives the table
        and returns such a mask. Missing values in a mask count as False.

    Returns
    -------
    DataFrame or GeoDataFrame
        The matching rows, with their original index labels.
    """
    if isinstance(condition, str):
        result = frame.query(condition)
    else:
        mask = _boolean_mask(frame, condition)
        result = frame.loc[mask]

    logger.info(f"Filtered {len(frame)} rows down to {len(result)}")
    return result.copy()


def slice_rows(frame: Frame, rows: RowSelector) -> Frame:
    """
    Select rows by position.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table.
    rows : int, slice, or sequence of int
        Positions to keep. A single int still returns a table.

    Returns
    -------
    DataFrame or GeoDataFrame
        The selected rows.

    Raises
    ------
    IndexError
        If a position is out of range.
    """
    n = len(frame)
    if isinstance(rows, slice):
        return frame.iloc[rows].copy()

    positions = [rows] if isinstance(rows, (int, np.integer)) else list(rows)
    bad = [p for p in positions if not -n <= int(p) < n]
    if bad:
        raise IndexError(f"Row position(s) {bad} out of range for a table with {n} rows")
    return frame.iloc[positions].copy()


def filter_by_range(
    frame: Frame,
    column: str,
    lower: Optional[float] = None,
    upper: Optional[float] = None,
    inclusive: Optional[str] = None
) -> Frame:
    """
    Keep rows whose `column` lies between `lower` and `upper`.

    Either bound may be None for an open interval. `inclusive` follows
    ``pandas.Series.between`` ('both', 'neither', 'left', 'right').
    """
    require_columns(frame, column)
    inclusive = inclusive or SUBSET_CONFIG.get("range_inclusive", "both")
    lo = -np.inf if lower is None else lower
    hi = np.inf if upper is None else upper
    mask = frame[column].between(lo, hi, inclusive=inclusive)
    logger.debug(f"Range filter on '{column}': [{lo}, {hi}] ({inclusive})")
    return filter_rows(frame, mask)


def filter_by_values(frame: Frame, column: str, values: Iterable[Any]) -> Frame:
    """Keep rows whose `column` takes one of `values`."""
    require_columns(frame, column)
    return filter_rows(frame, frame[column].isin(list(values)))


def subset(
    frame: Frame,
    rows: Optional[RowSelector] = None,
    columns: Optional[Union[str, Iterable[str]]] = None,
    condition: Optional[Condition] = None,
    keep_geometry: Optional[bool] = None
) -> Frame:
    """
    Subset a table by condition, row position and column name.

    The condition is applied first, then positional row selection on the
    filtered rows, then column selection.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table. It is not modified.
    rows : int, slice or sequence of int, optional
        Row positions to keep.
    columns : str or iterable of str, optional
        Columns to keep. The geometry column is sticky.
    condition : str, array-like of bool or callable, optional
        Row condition, see `filter_rows`.
    keep_geometry : bool, optional
        Keep (True) or drop (False) the geometry column.

    Returns
    -------
    DataFrame or GeoDataFrame
        The subset.
    """
    result = frame
    if condition is not None:
        result = filter_rows(result, condition)
    if rows is not None:
        result = slice_rows(result, rows)
    if columns is not None:
        result = select_columns(result, columns, keep_geometry=keep_geometry)
    elif keep_geometry is False:
        result = drop_geometry(result)
    if result is frame:
        result = frame.copy()

    if is_spatial(frame) and is_spatial(result):
        logger.debug(f"Subset keeps CRS {result.crs}")
    return result
