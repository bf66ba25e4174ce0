#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Metadata utilities for the attribute operations toolbox.

This module describes attribute tables and rasters (column types, per-column
statistics, geometry and CRS information) and saves those descriptions as
JSON or YAML next to exported results.
"""
import os
import json
import yaml
import numpy as np
import pandas as pd
from typing import Dict, Optional, Any
from datetime import datetime
from pandas.api.types import is_numeric_dtype

from geo_attributes.core.logging_config import get_module_logger
from geo_attributes.utils.utils import Frame, geometry_column

# Initialize logger
logger = get_module_logger(__name__)


def compute_column_statistics(frame: Frame) -> Dict[str, Dict[str, Any]]:
    """
    Compute statistics for each attribute column.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Input table. The geometry column is skipped.

    Returns
    -------
    dict
        Dictionary with statistics per column. Numeric columns get
        min/max/mean/median/std; every column gets count, missing and unique.
    """
    geom = geometry_column(frame)
    stats = {}

    for column in frame.columns:
        if column == geom:
            continue

        values = frame[column].dropna()
        entry = {
            "count": int(len(values)),
            "missing": int(frame[column].isna().sum()),
            "unique": int(values.nunique()),
        }

        if is_numeric_dtype(frame[column]) and len(values) > 0:
            entry.update({
                "min": float(values.min()),
                "max": float(values.max()),
                "mean": float(values.mean()),
                "median": float(values.median()),
                "std": float(values.std()) if len(values) > 1 else None,
            })
        elif is_numeric_dtype(frame[column]):
            entry.update({"min": None, "max": None, "mean": None, "median": None, "std": None})

        stats[str(column)] = entry

    return stats


def describe_table(frame: Frame) -> Dict[str, Any]:
    """
    Describe a table: size, column types, statistics and geometry.

    Returns
    -------
    dict
        JSON-serializable description.
    """
    geom = geometry_column(frame)
    description = {
        "rows": int(len(frame)),
        "columns": [str(col) for col in frame.columns],
        "dtypes": {str(col): str(dtype) for col, dtype in frame.dtypes.items()},
        "statistics": compute_column_statistics(frame),
        "spatial": geom is not None,
    }

    if geom is not None:
        geom_types = frame.geometry.geom_type.dropna().unique().tolist()
        description["geometry"] = {
            "column": geom,
            "types": geom_types,
            "crs": frame.crs.to_string() if frame.crs is not None else None,
            "bounds": [float(v) for v in frame.total_bounds] if len(frame) else None,
        }

    return description


def describe_raster(raster: Any) -> Dict[str, Any]:
    """
    Describe a raster: grid geometry, CRS, levels and value summary.
    """
    # Imported here to avoid a circular import with the raster package
    from geo_attributes.raster.summary import summarize_raster

    summary = summarize_raster(raster)
    return {
        "name": raster.name,
        "shape": list(raster.shape),
        "res": list(raster.res),
        "bounds": list(raster.bounds),
        "crs": raster.crs.to_string() if raster.crs is not None else None,
        "nodata": raster.nodata,
        "levels": {str(k): v for k, v in raster.levels.items()} if raster.levels else None,
        "stats": {k: (None if isinstance(v, float) and np.isnan(v) else v) for k, v in summary.items()},
    }


def save_description(
    description: Dict[str, Any],
    output_path: str,
    format: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None
) -> str:
    """
    Save a description dictionary with a timestamp.

    Parameters
    ----------
    description : dict
        Output of `describe_table` or `describe_raster`.
    output_path : str
        Path to save metadata.
    format : str, optional
        'json' or 'yaml'. Inferred from the file extension by default.
    extra : dict, optional
        Additional entries stored under ``"info"``.

    Returns
    -------
    str
        Path of the written file.
    """
    if format is None:
        format = "yaml" if str(output_path).lower().endswith((".yaml", ".yml")) else "json"

    metadata = {
        "timestamp": datetime.now().isoformat(),
        "info": extra or {},
        **description,
    }

    output_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(output_dir, exist_ok=True)

    if format.lower() == "json":
        with open(output_path, "w") as f:
            json.dump(metadata, f, indent=2, default=_to_builtin)
    elif format.lower() == "yaml":
        with open(output_path, "w") as f:
            yaml.safe_dump(json.loads(json.dumps(metadata, default=_to_builtin)), f,
                           default_flow_style=False, sort_keys=False)
    else:
        raise ValueError(f"Unsupported format: {format}")

    logger.info(f"Saved metadata to {output_path}")
    return str(output_path)


def _to_builtin(value: Any) -> Any:
    """JSON fallback for numpy and pandas scalars."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (pd.Timestamp, datetime)):
        return value.isoformat()
    return str(value)
