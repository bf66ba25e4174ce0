#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Raster summary module.

This module summarizes the values of raster cells: descriptive statistics,
frequency tables (with category labels for categorical rasters) and
histograms. No-data cells are ignored throughout.
"""
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from geo_attributes.core.config import RASTER_CONFIG
from geo_attributes.core.logging_config import get_module_logger
from geo_attributes.raster.grid import Raster

# Initialize logger
logger = get_module_logger(__name__)


def summarize_raster(raster: Raster) -> Dict[str, Any]:
    """
    Descriptive statistics of the valid cells of a raster.

    Parameters
    ----------
    raster : Raster
        Input raster.

    Returns
    -------
    dict
        Dictionary with:
        - min, max, mean, std, median, q1, q3: statistics of valid values
        - skewness, kurtosis: higher-order moments (NaN if too few values)
        - count: number of valid cells
        - nodata_count: number of no-data cells
        - ncell: total number of cells
        - valid_percentage: share of valid cells in percent
        All statistics are NaN for a raster without valid cells.
    """
    valid = raster.valid_values()
    count = int(valid.size)

    summary = {
        "count": count,
        "nodata_count": raster.ncell - count,
        "ncell": raster.ncell,
        "valid_percentage": float(count / raster.ncell * 100),
    }

    if count == 0:
        logger.warning(f"Raster '{raster.name}' has no valid cells")
        for key in ("min", "max", "mean", "std", "median", "q1", "q3", "skewness", "kurtosis"):
            summary[key] = float("nan")
        return summary

    q1, median, q3 = np.percentile(valid, [25, 50, 75])
    summary.update({
        "min": float(np.min(valid)),
        "max": float(np.max(valid)),
        "mean": float(np.mean(valid)),
        "std": float(np.std(valid)),
        "median": float(median),
        "q1": float(q1),
        "q3": float(q3),
        # Need at least 3 points for skewness and 4 for kurtosis
        "skewness": float(stats.skew(valid)) if count >= 3 else float("nan"),
        "kurtosis": float(stats.kurtosis(valid)) if count >= 4 else float("nan"),
    })
    return summary


def frequency_table(raster: Raster, digits: Optional[int] = None) -> pd.DataFrame:
    """
    Count how many cells hold each value.

    Parameters
    ----------
    raster : Raster
        Input raster.
    digits : int, optional
        Round values to this many decimals before counting.

    Returns
    -------
    DataFrame
        Columns ``value`` and ``count`` sorted by value, plus ``category``
        for categorical rasters.
    """
    valid = raster.valid_values()
    if digits is not None:
        valid = np.round(valid, digits)

    counts = pd.Series(valid).value_counts().sort_index()
    table = pd.DataFrame({"value": counts.index.to_numpy(), "count": counts.to_numpy()})

    if raster.is_categorical:
        table["category"] = [raster.levels.get(int(v)) if float(v).is_integer() else None
                             for v in table["value"]]

    logger.debug(f"Frequency table of '{raster.name}': {len(table)} distinct values")
    return table


def histogram(raster: Raster, bins: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Histogram of valid cell values.

    Returns
    -------
    tuple
        - counts per bin
        - bin edges (one more than counts)
    """
    bins = bins or RASTER_CONFIG.get("histogram_bins", 10)
    return np.histogram(raster.valid_values(), bins=bins)


def log_raster_stats(raster: Raster) -> None:
    """
    Log basic statistics about the raster.
    """
    summary = summarize_raster(raster)

    logger.info(f"Raster '{raster.name}' shape: {raster.shape}, resolution: {raster.res}")
    logger.info(f"Valid cells: {summary['count']} / {summary['ncell']} "
                f"({summary['valid_percentage']:.2f}%)")
    if summary["count"]:
        logger.info(f"Value range: {summary['min']:.2f} to {summary['max']:.2f}")
        logger.info(f"Mean value: {summary['mean']:.2f} ± {summary['std']:.2f}")
    if raster.is_categorical:
        logger.info(f"Categories: {raster.categories()}")
