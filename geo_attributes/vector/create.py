#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Attribute creation module.

This module derives new attribute columns from existing ones (expressions,
densities, areas), combines and splits text columns, and renames columns
while keeping the geometry column active.
"""
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Union

import pandas as pd

from geo_attributes.core.config import DEFAULT_EQUAL_AREA_CRS
from geo_attributes.core.logging_config import get_module_logger
from geo_attributes.utils.utils import (
    Frame, geometry_column, require_columns
)

# Initialize logger
logger = get_module_logger(__name__)


def derive_column(
    frame: Frame,
    name: str,
    expression: Union[str, Callable[[Frame], Any]]
) -> Frame:
    """
    Add (or overwrite) a column computed from other columns.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table. It is not modified.
    name : str
        Name of the new column.
    expression : str or callable
        A pandas ``eval`` expression such as ``"pop / area_km2"`` or a
        function receiving the table and returning the column values.

    Returns
    -------
    DataFrame or GeoDataFrame
        Copy of `frame` with the new column.
    """
    if name == geometry_column(frame):
        raise ValueError(f"Cannot overwrite the geometry column '{name}' with attribute values")

    if isinstance(expression, str):
        values = frame.eval(expression)
    elif callable(expression):
        values = expression(frame)
    else:
        raise ValueError("expression must be a string or a callable")

    result = frame.copy()
    result[name] = values
    logger.debug(f"Derived column '{name}'")
    return result


def add_area_column(
    frame: Frame,
    name: str = "area_km2",
    crs: Optional[Any] = None
) -> Frame:
    """
    Add the area of each geometry in square kilometres.

    Geographic (longitude/latitude) data is projected to an equal-area CRS
    first. Projected data is measured in its own CRS unless `crs` is given.

    Raises
    ------
    ValueError
        If `frame` has no geometry or no CRS.
    """
    if geometry_column(frame) is None:
        raise ValueError("add_area_column requires a GeoDataFrame with an active geometry column")
    if frame.crs is None:
        raise ValueError("Cannot compute areas for data without a CRS")

    if crs is None and frame.crs.is_geographic:
        crs = DEFAULT_EQUAL_AREA_CRS
    geometry = frame.geometry.to_crs(crs) if crs is not None else frame.geometry

    unit_factor = 1.0
    if geometry.crs.axis_info:
        unit_factor = geometry.crs.axis_info[0].unit_conversion_factor

    result = frame.copy()
    result[name] = geometry.area * unit_factor ** 2 / 1e6
    logger.debug(f"Added area column '{name}' measured in {geometry.crs}")
    return result


def density(
    frame: Frame,
    numerator: str,
    denominator: str,
    name: Optional[str] = None
) -> Frame:
    """
    Ratio of two columns, e.g. population density ``pop / area_km2``.

    Division by zero gives NaN rather than infinity.
    """
    require_columns(frame, [numerator, denominator])
    name = name or f"{numerator}_per_{denominator}"

    num = pd.to_numeric(frame[numerator], errors="coerce").astype(float)
    den = pd.to_numeric(frame[denominator], errors="coerce").astype(float)
    ratio = num / den.where(den != 0)

    result = frame.copy()
    result[name] = ratio
    zero = int((den == 0).sum())
    if zero:
        logger.warning(f"{zero} row(s) have zero '{denominator}'; '{name}' set to NaN")
    return result


def unite_columns(
    frame: Frame,
    columns: Sequence[str],
    into: str,
    sep: str = ":",
    remove: bool = True
) -> Frame:
    """
    Paste several columns together into one text column.

    Missing values become the string ``"nan"``. The new column takes the
    position of the first united column.
    """
    names = require_columns(frame, columns)
    if len(names) < 2:
        raise ValueError("unite_columns needs at least two columns")

    united = frame[names[0]].astype(str)
    for col in names[1:]:
        united = united + sep + frame[col].astype(str)

    result = frame.copy()
    position = list(result.columns).index(names[0])
    if remove:
        position -= sum(1 for col in frame.columns[:position] if col in names)
        result = result.drop(columns=names)
    if into in result.columns:
        result[into] = united
    else:
        result.insert(min(position, len(result.columns)), into, united)
    return result


def separate_column(
    frame: Frame,
    column: str,
    into: Sequence[str],
    sep: str = ":",
    remove: bool = True
) -> Frame:
    """
    Split a text column into several columns.

    The value is split at most ``len(into) - 1`` times. Values with fewer
    parts leave the trailing columns missing.
    """
    require_columns(frame, column)
    into = list(into)
    if not into:
        raise ValueError("separate_column needs at least one output column")

    text = frame[column].astype("string")
    if len(into) == 1:
        # pandas reads n=0 as "split everywhere"
        parts = text.to_frame(0)
    else:
        parts = text.str.split(sep, n=len(into) - 1, expand=True)
        parts = parts.reindex(columns=range(len(into)))

    result = frame.copy()
    position = list(result.columns).index(column)
    if remove:
        result = result.drop(columns=column)
    for offset, name in enumerate(into):
        values = parts[offset].astype(object).where(parts[offset].notna(), None)
        if name in result.columns:
            result[name] = values
        else:
            result.insert(min(position + offset, len(result.columns)), name, values)
    return result


def rename_columns(frame: Frame, mapping: Dict[str, str]) -> Frame:
    """
    Rename columns; renaming the geometry column keeps it active.
    """
    require_columns(frame, list(mapping))
    mapping = {old: new for old, new in mapping.items() if old != new}
    geom = geometry_column(frame)

    if geom is not None and geom in mapping:
        result = frame.rename_geometry(mapping[geom])
        rest = {old: new for old, new in mapping.items() if old != geom}
        return result.rename(columns=rest) if rest else result

    return frame.rename(columns=mapping)


def set_column_names(frame: Frame, names: Iterable[str]) -> Frame:
    """Replace every column name; requires exactly one name per column."""
    names = list(names)
    if len(names) != len(frame.columns):
        raise ValueError(
            f"Got {len(names)} name(s) for {len(frame.columns)} column(s)"
        )
    if len(set(names)) != len(names):
        raise ValueError("Column names must be unique")
    return rename_columns(frame, dict(zip(frame.columns, names)))

