#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility functions for the attribute operations toolbox.

This module provides common helpers used across the vector and raster
modules, including timing, column validation and geometry detection.
"""
import time
import functools
from typing import Callable, Iterable, List, Optional, Union

import pandas as pd
import geopandas as gpd

from geo_attributes.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)

Frame = Union[pd.DataFrame, gpd.GeoDataFrame]


def timer(func: Callable) -> Callable:
    """
    Decorator to time function execution.

    Parameters
    ----------
    func : Callable
        Function to time.

    Returns
    -------
    Callable
        Wrapped function with timing.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        elapsed = time.time() - start_time
        logger.debug(f"Function {func.__name__} took {elapsed:.4f} seconds to run")
        return result
    return wrapper


def is_spatial(frame: Frame) -> bool:
    """Return True if `frame` is a GeoDataFrame with an active geometry column."""
    if not isinstance(frame, gpd.GeoDataFrame):
        return False
    name = getattr(frame, "_geometry_column_name", None)
    return name is not None and name in frame.columns


def geometry_column(frame: Frame) -> Optional[str]:
    """Name of the active geometry column, or None for attribute tables."""
    if is_spatial(frame):
        return frame.geometry.name
    return None


def as_list(value: Union[str, Iterable[str], None]) -> List[str]:
    """Normalize a column name or an iterable of names to a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def require_columns(frame: Frame, columns: Union[str, Iterable[str]], what: str = "column") -> List[str]:
    """
    Check that every column exists in `frame`.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Table to check.
    columns : str or iterable of str
        Column names that must be present.
    what : str, optional
        Word used in the error message, by default "column".

    Returns
    -------
    list
        The column names as a list.

    Raises
    ------
    KeyError
        If any of the columns is missing.
    """
    names = as_list(columns)
    missing = [name for name in names if name not in frame.columns]
    if missing:
        raise KeyError(
            f"Unknown {what}(s) {missing}; available columns: {list(frame.columns)}"
        )
    return names


def attribute_columns(frame: Frame) -> List[str]:
    """All columns except the active geometry column."""
    geom = geometry_column(frame)
    return [col for col in frame.columns if col != geom]
