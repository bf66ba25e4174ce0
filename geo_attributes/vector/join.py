#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Attribute join module.

This module combines two tables on shared key columns. When the left table
holds simple features the result keeps its geometry column and CRS, so a
plain attribute table can be attached to a map layer. Helpers report keys
that found no partner and fix mismatched key spellings before joining.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd
import geopandas as gpd
from pandas.api.types import (
    is_bool_dtype, is_datetime64_any_dtype, is_numeric_dtype
)

from geo_attributes.core.config import JOIN_CONFIG
from geo_attributes.core.logging_config import get_module_logger
from geo_attributes.utils.utils import (
    Frame, as_list, attribute_columns, geometry_column, require_columns, timer
)
from geo_attributes.vector.subset import drop_geometry

# Initialize logger
logger = get_module_logger(__name__)

Keys = Union[str, Sequence[str], None]

SPATIAL_JOIN_TYPES = ("left", "inner")
TABLE_JOIN_TYPES = ("left", "inner", "right", "outer")


def _resolve_keys(
    left: Frame,
    right: Frame,
    on: Keys = None,
    left_on: Keys = None,
    right_on: Keys = None
) -> Tuple[List[str], List[str]]:
    """Work out the key columns of each side and check they exist."""
    if on is not None:
        if left_on is not None or right_on is not None:
            raise ValueError("Give either 'on' or 'left_on'/'right_on', not both")
        left_keys = right_keys = as_list(on)
    elif left_on is not None or right_on is not None:
        if left_on is None or right_on is None:
            raise ValueError("'left_on' and 'right_on' must be given together")
        left_keys, right_keys = as_list(left_on), as_list(right_on)
        if len(left_keys) != len(right_keys):
            raise ValueError(
                f"'left_on' has {len(left_keys)} column(s) but 'right_on' has {len(right_keys)}"
            )
    else:
        right_attrs = set(attribute_columns(right))
        left_keys = right_keys = [col for col in attribute_columns(left) if col in right_attrs]
        if not left_keys:
            raise ValueError("The tables share no column names; specify the join keys")
        logger.info(f"Joining by shared column(s) {left_keys}")

    if not left_keys:
        raise ValueError("At least one join key is required")

    require_columns(left, left_keys, what="left key")
    require_columns(right, right_keys, what="right key")
    return left_keys, right_keys


def _key_kind(series: pd.Series) -> str:
    if is_bool_dtype(series):
        return "bool"
    if is_numeric_dtype(series):
        return "numeric"
    if is_datetime64_any_dtype(series):
        return "datetime"
    return "string"


def _align_key_types(
    left: Frame,
    right: pd.DataFrame,
    left_keys: List[str],
    right_keys: List[str],
    coerce: bool
) -> Tuple[Frame, pd.DataFrame]:
    """Raise on incompatible key types, or convert both sides to str when coercing."""
    for lk, rk in zip(left_keys, right_keys):
        left_kind, right_kind = _key_kind(left[lk]), _key_kind(right[rk])
        if left_kind == right_kind:
            continue
        if not coerce:
            raise TypeError(
                f"Cannot join {left_kind} key '{lk}' with {right_kind} key '{rk}'; "
                f"convert one of them or pass coerce_keys=True"
            )
        logger.warning(f"Coercing join keys '{lk}' ({left_kind}) and '{rk}' ({right_kind}) to str")
        left = left.copy()
        right = right.copy()
        left[lk] = left[lk].astype(str)
        right[rk] = right[rk].astype(str)
    return left, right


def _key_index(frame: Frame, keys: List[str]) -> pd.Index:
    if len(keys) == 1:
        return pd.Index(frame[keys[0]])
    return pd.MultiIndex.from_frame(pd.DataFrame(frame[keys]))


def unmatched_keys(
    left: Frame,
    right: Frame,
    on: Keys = None,
    left_on: Keys = None,
    right_on: Keys = None,
    side: str = "right"
) -> List[Any]:
    """
    Keys of one table that have no partner in the other.

    Parameters
    ----------
    left, right : DataFrame or GeoDataFrame
        Tables to compare.
    on, left_on, right_on : str or list of str, optional
        Join keys, as for `attribute_join`.
    side : {'right', 'left'}
        Which table's keys to report. With 'right' (the default) the result
        lists the rows a left join would silently drop.

    Returns
    -------
    list
        Unique unmatched key values in order of first appearance. Tuples
        when more than one key column is used.
    """
    if side not in ("left", "right"):
        raise ValueError(f"side must be 'left' or 'right', got '{side}'")

    left_keys, right_keys = _resolve_keys(left, right, on, left_on, right_on)

    if side == "right":
        source, source_keys, target, target_keys = right, right_keys, left, left_keys
    else:
        source, source_keys, target, target_keys = left, left_keys, right, right_keys

    source_index = _key_index(source, source_keys).drop_duplicates()
    target_index = _key_index(target, target_keys)
    missing = source_index[~source_index.isin(target_index)]
    return list(missing)


def find_key_candidates(
    values: Iterable[Any],
    pattern: str,
    case: bool = False,
    regex: bool = True
) -> List[str]:
    """
    Find key values matching a pattern.

    Useful for locating the spelling a table uses for a key that failed to
    join, e.g. ``find_key_candidates(world["name_long"], "Congo")``.

    Parameters
    ----------
    values : iterable
        Candidate key values (a column).
    pattern : str
        Regular expression (or plain substring when `regex` is False).
    case : bool, optional
        Case-sensitive matching, by default False.
    regex : bool, optional
        Treat `pattern` as a regular expression, by default True.

    Returns
    -------
    list of str
        Unique matching values in order of first appearance.
    """
    series = pd.Series(list(values), dtype=object).dropna().astype(str)
    matches = series[series.str.contains(pattern, case=case, regex=regex)]
    return list(dict.fromkeys(matches))


def recode_keys(frame: Frame, column: str, mapping: Dict[Any, Any]) -> Frame:
    """
    Replace key values in `column` using `mapping`.

    Values that are not in the mapping are left unchanged. The input frame
    is not modified.
    """
    require_columns(frame, column)
    present = set(frame[column].dropna())
    unused = [key for key in mapping if key not in present]
    if unused:
        logger.warning(f"Recode value(s) not found in '{column}': {unused}")

    result = frame.copy()
    changed = frame[column].isin(list(mapping))
    result[column] = frame[column].replace(mapping)
    logger.info(f"Recoded {int(changed.sum())} value(s) in '{column}'")
    return result


@timer
def attribute_join(
    left: Frame,
    right: Frame,
    on: Keys = None,
    left_on: Keys = None,
    right_on: Keys = None,
    how: Optional[str] = None,
    validate: Optional[str] = None,
    suffixes: Optional[Tuple[str, str]] = None,
    coerce_keys: Optional[bool] = None
) -> Frame:
    """
    Join two tables on key columns.

    Parameters
    ----------
    left : DataFrame or GeoDataFrame
        Left table. If it holds simple features the result keeps its
        geometry column and CRS.
    right : DataFrame or GeoDataFrame
        Right table. Its geometry, if any, is dropped before joining.
    on : str or list of str, optional
        Key column(s) present in both tables. If neither `on` nor
        `left_on`/`right_on` is given the shared column names are used.
    left_on, right_on : str or list of str, optional
        Key columns with different names on each side. The right-hand key
        columns are not repeated in the output.
    how : str, optional
        'left' (keep every left row) or 'inner' (keep matched rows only).
        'right' and 'outer' are also accepted for plain tables. Defaults to
        ``JOIN_CONFIG['how']``.
    validate : str, optional
        pandas merge validation ('one_to_one', 'many_to_one', ...).
    suffixes : tuple of str, optional
        Suffixes for overlapping non-key columns.
    coerce_keys : bool, optional
        Convert keys of different types to str instead of raising.

    Returns
    -------
    DataFrame or GeoDataFrame
        Joined table with a fresh RangeIndex. Row order of `left` is kept
        for left joins.

    Raises
    ------
    KeyError
        If a key column is missing.
    TypeError
        If key types are incompatible and `coerce_keys` is False.
    ValueError
        If the join type is invalid or `validate` fails.
    """
    how = how or JOIN_CONFIG.get("how", "left")
    suffixes = tuple(suffixes or JOIN_CONFIG.get("suffixes", ("", "_right")))
    if coerce_keys is None:
        coerce_keys = JOIN_CONFIG.get("coerce_keys", False)

    geom = geometry_column(left)
    allowed = SPATIAL_JOIN_TYPES if geom is not None else TABLE_JOIN_TYPES
    if how not in allowed:
        raise ValueError(f"Invalid join type '{how}'; expected one of {list(allowed)}")

    left_keys, right_keys = _resolve_keys(left, right, on, left_on, right_on)

    right_data = drop_geometry(right)
    if geometry_column(right) is not None:
        logger.debug("Dropped geometry of the right-hand table before joining")

    left, right_data = _align_key_types(left, right_data, left_keys, right_keys, coerce_keys)

    if JOIN_CONFIG.get("warn_unmatched", True) and how in ("left", "inner"):
        dropped = unmatched_keys(left, right_data, left_on=left_keys, right_on=right_keys)
        if dropped:
            limit = JOIN_CONFIG.get("max_reported_keys", 20)
            shown = dropped[:limit]
            more = f" (and {len(dropped) - limit} more)" if len(dropped) > limit else ""
            logger.warning(
                f"{len(dropped)} key(s) of the right-hand table have no match and are dropped: "
                f"{shown}{more}"
            )

    merged = pd.merge(
        pd.DataFrame(left),
        right_data,
        how=how,
        left_on=left_keys,
        right_on=right_keys,
        suffixes=suffixes,
        validate=validate,
        indicator="_join_match",
    )

    matched = int((merged["_join_match"] == "both").sum())
    merged = merged.drop(columns="_join_match")

    # Right-hand key columns duplicate the left ones when names differ
    redundant = [
        rk for lk, rk in zip(left_keys, right_keys)
        if rk != lk and rk in merged.columns and rk not in left.columns
    ]
    if redundant and how in ("left", "inner"):
        merged = merged.drop(columns=redundant)

    if geom is not None:
        merged = gpd.GeoDataFrame(merged, geometry=geom, crs=left.crs)

    logger.info(
        f"{how.capitalize()} join on {left_keys}: {len(left)} left rows, "
        f"{len(right_data)} right rows, {matched} matched, {len(merged)} result rows"
    )
    return merged
