#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration settings for the attribute operations toolbox.

This module centralizes all configuration parameters used across the vector
and raster modules, making it easier to modify settings in one place.
Settings can be overridden at runtime from a YAML file with `load_config`.
"""
from typing import Dict, List, Union, Any, Optional
import os
from pathlib import Path
import yaml

# General configuration
DEFAULT_NODATA_VALUE: float = -9999.0
DEFAULT_EQUAL_AREA_CRS: str = "EPSG:6933"  # World Cylindrical Equal Area

# Path configuration
PROJECT_ROOT: Path = Path(__file__).parent.absolute()
DEFAULT_OUTPUT_DIR: Path = Path(os.environ.get("GEO_ATTRIBUTES_OUTPUT", Path.cwd() / "output"))

# Subsetting configuration
SUBSET_CONFIG: Dict[str, Any] = {
    "keep_geometry": True,    # Geometry column is kept unless explicitly dropped
    "range_inclusive": "both",  # Options: 'both', 'neither', 'left', 'right'
}

# Aggregation configuration
AGGREGATE_CONFIG: Dict[str, Any] = {
    "default_func": "sum",
    "dropna": True,           # Drop rows whose group key is missing
    "allowed_funcs": [
        "sum", "mean", "median", "min", "max", "count",
        "std", "var", "first", "last", "nunique",
    ],
    "top_n": 3,
}

# Attribute join configuration
JOIN_CONFIG: Dict[str, Any] = {
    "how": "left",            # Options: 'left', 'inner' ('right', 'outer' for plain tables)
    "suffixes": ("", "_right"),
    "coerce_keys": False,     # Convert both keys to str when their types differ
    "warn_unmatched": True,   # Log right-hand keys dropped by a left join
    "max_reported_keys": 20,
}

# Raster configuration
RASTER_CONFIG: Dict[str, Any] = {
    "dtype": "float64",
    "driver": "GTiff",
    "levels_suffix": ".levels.json",  # Sidecar file holding category labels
    "histogram_bins": 10,
}

# Export configuration
EXPORT_CONFIG: Dict[str, Any] = {
    "compress_output": False,    # Gzip output CSV
    "remove_original_after_compression": False,
    "export_metadata": True,     # Export metadata as JSON
    "chunk_export": True,        # Export in chunks for large tables
    "chunk_size": 10000,         # Rows per chunk when exporting
    "vector_driver": None,       # None = infer from file extension
}

# Logging configuration
LOGGING_CONFIG: Dict[str, Any] = {
    "level": "INFO",  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    "log_to_file": False,
    "log_file": DEFAULT_OUTPUT_DIR / "geo_attributes.log",
    "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# Sections that can be overridden from a YAML file
CONFIG_SECTIONS: Dict[str, Dict[str, Any]] = {
    "subset": SUBSET_CONFIG,
    "aggregate": AGGREGATE_CONFIG,
    "join": JOIN_CONFIG,
    "raster": RASTER_CONFIG,
    "export": EXPORT_CONFIG,
    "logging": LOGGING_CONFIG,
}


def load_config(path: Union[str, Path]) -> Dict[str, Dict[str, Any]]:
    """
    Update the configuration dictionaries from a YAML file.

    Parameters
    ----------
    path : str or Path
        Path to a YAML file whose top-level keys name configuration
        sections (``subset``, ``aggregate``, ``join``, ``raster``,
        ``export``, ``logging``).

    Returns
    -------
    dict
        The sections that were updated, after the update.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file is not a mapping or names an unknown section.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        overrides = yaml.safe_load(f) or {}

    if not isinstance(overrides, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")

    unknown = [key for key in overrides if key not in CONFIG_SECTIONS]
    if unknown:
        raise ValueError(
            f"Unknown configuration section(s) {unknown}; "
            f"expected one of {sorted(CONFIG_SECTIONS)}"
        )

    updated = {}
    for section, values in overrides.items():
        if not isinstance(values, dict):
            raise ValueError(f"Section '{section}' must be a mapping")
        if section == "join" and "suffixes" in values:
            values["suffixes"] = tuple(values["suffixes"])
        CONFIG_SECTIONS[section].update(values)
        updated[section] = CONFIG_SECTIONS[section]

    return updated
