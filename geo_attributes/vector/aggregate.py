#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Attribute aggregation module.

This module groups the rows of a table by one or more key columns and reduces
their attribute values per group, optionally unioning the geometries of each
group (dissolve).
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd
import geopandas as gpd
from pandas.api.types import is_numeric_dtype

from geo_attributes.core.config import AGGREGATE_CONFIG
from geo_attributes.core.logging_config import get_module_logger
from geo_attributes.utils.utils import (
    Frame, attribute_columns, geometry_column, require_columns, timer
)
from geo_attributes.vector.subset import drop_geometry

# Initialize logger
logger = get_module_logger(__name__)

AggFunc = Union[str, Dict[str, str]]


def _check_func(func: AggFunc, columns: List[str]) -> AggFunc:
    """Validate an aggregation name or a column -> name mapping."""
    allowed = AGGREGATE_CONFIG.get("allowed_funcs", [])

    if isinstance(func, str):
        if func not in allowed:
            raise ValueError(f"Unknown aggregation '{func}'; expected one of {allowed}")
        return func

    if isinstance(func, dict):
        unknown_cols = [col for col in func if col not in columns]
        if unknown_cols:
            raise KeyError(f"Aggregation given for column(s) not aggregated: {unknown_cols}")
        bad = {col: f for col, f in func.items() if f not in allowed}
        if bad:
            raise ValueError(f"Unknown aggregation(s) {bad}; expected one of {allowed}")
        return func

    raise ValueError(f"Aggregation must be a name or a mapping, got {type(func).__name__}")


def _value_columns(frame: Frame, by: List[str], columns: Optional[Iterable[str]]) -> List[str]:
    """Columns to aggregate: the given ones, or every numeric non-key attribute."""
    if columns is not None:
        names = require_columns(frame, columns)
        overlap = [name for name in names if name in by]
        if overlap:
            raise ValueError(f"Column(s) {overlap} are group keys and cannot be aggregated")
        geom = geometry_column(frame)
        if geom in names:
            raise ValueError("The geometry column cannot be aggregated with attribute functions; use dissolve_by")
        return names

    return [
        col for col in attribute_columns(frame)
        if col not in by and is_numeric_dtype(frame[col])
    ]


@timer
def aggregate_attributes(
    frame: Frame,
    by: Union[str, Iterable[str]],
    columns: Optional[Iterable[str]] = None,
    func: Optional[AggFunc] = None,
    dropna: Optional[bool] = None
) -> pd.DataFrame:
    """
    Aggregate attribute values by group.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table. Geometry is ignored.
    by : str or iterable of str
        Group key column(s).
    columns : iterable of str, optional
        Value columns to reduce. By default the keys of a `func` mapping,
        else every numeric attribute column that is not a key.
    func : str or dict, optional
        Aggregation name (``sum``, ``mean``, ``count``, ...) or a mapping of
        column to aggregation name. Defaults to
        ``AGGREGATE_CONFIG['default_func']``.
    dropna : bool, optional
        Drop rows whose key is missing. Defaults to
        ``AGGREGATE_CONFIG['dropna']``.

    Returns
    -------
    DataFrame
        One row per group, with the keys as ordinary columns.

    Examples
    --------
    >>> aggregate_attributes(world, by="continent", columns=["pop"])  # doctest: +SKIP
    """
    keys = require_columns(frame, by, what="group key")
    if not keys:
        raise ValueError("At least one group key is required")
    if columns is None and isinstance(func, dict):
        columns = list(func)
    values = _value_columns(frame, keys, columns)
    func = _check_func(func or AGGREGATE_CONFIG.get("default_func", "sum"), values)
    if dropna is None:
        dropna = AGGREGATE_CONFIG.get("dropna", True)

    data = drop_geometry(frame)
    if values:
        result = data.groupby(keys, dropna=dropna, sort=True)[values].agg(func).reset_index()
    else:
        logger.warning("No value columns to aggregate; returning group keys only")
        result = data[keys].drop_duplicates()
        if dropna:
            result = result.dropna()
        result = result.sort_values(keys).reset_index(drop=True)

    logger.info(f"Aggregated {len(frame)} rows into {len(result)} groups by {keys}")
    return result


def summarize_groups(
    frame: Frame,
    by: Union[str, Iterable[str]],
    dropna: Optional[bool] = None,
    **named: Tuple[str, Any]
) -> pd.DataFrame:
    """
    Named aggregation per group.

    Each keyword names an output column and maps to a ``(column, func)``
    pair, e.g. ``pop=("pop", "sum"), n_countries=("name_long", "count")``.

    Returns
    -------
    DataFrame
        One row per group, with the keys as ordinary columns.
    """
    keys = require_columns(frame, by, what="group key")
    if not named:
        raise ValueError("At least one named aggregation is required")

    for out_name, pair in named.items():
        if not isinstance(pair, tuple) or len(pair) != 2:
            raise ValueError(f"Aggregation '{out_name}' must be a (column, func) pair")
        require_columns(frame, pair[0])
        if isinstance(pair[1], str):
            _check_func(pair[1], [pair[0]])

    if dropna is None:
        dropna = AGGREGATE_CONFIG.get("dropna", True)

    data = drop_geometry(frame)
    result = data.groupby(keys, dropna=dropna, sort=True).agg(**named).reset_index()
    logger.info(f"Summarized {len(frame)} rows into {len(result)} groups: {list(named)}")
    return result


@timer
def dissolve_by(
    frame: gpd.GeoDataFrame,
    by: Union[str, Iterable[str]],
    aggfunc: Optional[AggFunc] = None,
    columns: Optional[Iterable[str]] = None,
    dropna: Optional[bool] = None
) -> gpd.GeoDataFrame:
    """
    Aggregate attributes and union geometries by group.

    Parameters
    ----------
    frame : GeoDataFrame
        Input simple features.
    by : str or iterable of str
        Group key column(s).
    aggfunc : str or dict, optional
        Aggregation applied to the value columns.
    columns : iterable of str, optional
        Value columns to keep. By default the keys of an `aggfunc` mapping,
        else every numeric attribute column.
    dropna : bool, optional
        Drop rows whose key is missing.

    Returns
    -------
    GeoDataFrame
        One feature per group with the same CRS as `frame`.

    Raises
    ------
    ValueError
        If `frame` has no geometry column.
    """
    geom = geometry_column(frame)
    if geom is None:
        raise ValueError("dissolve_by requires a GeoDataFrame with an active geometry column")

    keys = require_columns(frame, by, what="group key")
    if columns is None and isinstance(aggfunc, dict):
        columns = list(aggfunc)
    values = _value_columns(frame, keys, columns)
    aggfunc = _check_func(aggfunc or AGGREGATE_CONFIG.get("default_func", "sum"), values)
    if dropna is None:
        dropna = AGGREGATE_CONFIG.get("dropna", True)

    result = (
        frame[keys + values + [geom]]
        .dissolve(by=keys, aggfunc=aggfunc, dropna=dropna)
        .reset_index()
    )
    # Keep keys first, then values, then geometry
    result = result[keys + values + [geom]]

    logger.info(f"Dissolved {len(frame)} features into {len(result)} by {keys}")
    return result


def top_n(
    frame: Frame,
    column: str,
    n: Optional[int] = None,
    ascending: bool = False
) -> Frame:
    """
    Rows with the largest (or smallest, if `ascending`) values of `column`.

    Missing values are ranked last.
    """
    require_columns(frame, column)
    n = AGGREGATE_CONFIG.get("top_n", 3) if n is None else n
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return frame.sort_values(column, ascending=ascending, na_position="last").head(n).copy()
