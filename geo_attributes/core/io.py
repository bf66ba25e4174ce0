#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Input/output handling for the attribute operations toolbox.

This module handles loading vector, tabular and raster data, and exporting
tables, rasters and metadata.
"""
import os
import json
import gzip
import shutil
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd
import geopandas as gpd
import rasterio
from rasterio.errors import RasterioError
from tqdm import tqdm

from geo_attributes.core.config import EXPORT_CONFIG, RASTER_CONFIG
from geo_attributes.core.logging_config import get_module_logger
from geo_attributes.raster.grid import Raster
from geo_attributes.utils.metadata import describe_table, save_description
from geo_attributes.utils.utils import Frame, geometry_column

# Initialize logger
logger = get_module_logger(__name__)

PathLike = Union[str, Path]

VECTOR_DRIVERS: Dict[str, str] = {
    ".gpkg": "GPKG",
    ".geojson": "GeoJSON",
    ".json": "GeoJSON",
    ".shp": "ESRI Shapefile",
}

TABLE_SUFFIXES = (".csv", ".txt")


def _require_file(path: PathLike) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path


def _ensure_parent(path: PathLike) -> None:
    output_dir = os.path.dirname(str(path))
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)


def load_vector(path: PathLike, layer: Optional[str] = None) -> gpd.GeoDataFrame:
    """
    Load simple features from a vector file.

    Parameters
    ----------
    path : str or Path
        Path to any format readable by geopandas (GeoPackage, GeoJSON,
        Shapefile, ...).
    layer : str, optional
        Layer name for multi-layer sources.

    Returns
    -------
    GeoDataFrame
        The features with their CRS.
    """
    path = _require_file(path)
    logger.info(f"Loading vector data from {path}")

    gdf = gpd.read_file(path, layer=layer) if layer else gpd.read_file(path)

    logger.info(f"Loaded {len(gdf)} features with {len(gdf.columns) - 1} attribute columns "
                f"(CRS: {gdf.crs.to_string() if gdf.crs else None})")
    return gdf


def load_table(path: PathLike, **kwargs) -> pd.DataFrame:
    """
    Load an attribute table.

    CSV/text files are read with pandas (extra keyword arguments are
    passed to ``pandas.read_csv``); anything else is read as a vector file
    and its geometry is dropped.
    """
    path = _require_file(path)
    if path.suffix.lower() in TABLE_SUFFIXES or str(path).lower().endswith(".csv.gz"):
        df = pd.read_csv(path, **kwargs)
    else:
        gdf = gpd.read_file(path)
        df = pd.DataFrame(gdf.drop(columns=gdf.geometry.name))

    logger.info(f"Loaded table with {len(df)} rows and {len(df.columns)} columns from {path}")
    return df


def load_data(path: PathLike, **kwargs) -> Frame:
    """Load a vector file as a GeoDataFrame, or a CSV file as a DataFrame."""
    path = Path(path)
    if path.suffix.lower() in TABLE_SUFFIXES or str(path).lower().endswith(".csv.gz"):
        return load_table(path, **kwargs)
    return load_vector(path, **kwargs)


def _levels_path(path: PathLike) -> Path:
    return Path(str(path) + RASTER_CONFIG.get("levels_suffix", ".levels.json"))


def load_raster(path: PathLike, band: int = 1, name: Optional[str] = None) -> Raster:
    """
    Load one band of a raster file.

    Parameters
    ----------
    path : str or Path
        Path to the raster file (GeoTIFF, ASCII grid, ...).
    band : int, optional
        Band number (1-based), by default 1.
    name : str, optional
        Layer name, by default the file stem.

    Returns
    -------
    Raster
        Raster with no-data cells set to NaN. Category labels are read from
        a ``<file>.levels.json`` sidecar when present.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    RuntimeError
        If rasterio cannot read the file.
    """
    path = _require_file(path)
    logger.info(f"Loading raster from {path}")

    try:
        with rasterio.open(path) as src:
            if band < 1 or band > src.count:
                raise ValueError(f"Band {band} not in 1..{src.count}")
            arr = src.read(band).astype(RASTER_CONFIG.get("dtype", "float64"))
            nodata = src.nodata
            transform = src.transform
            crs = src.crs
    except RasterioError as e:
        logger.error(f"Rasterio loading failed: {str(e)}")
        raise RuntimeError(f"Failed to load raster: {path}") from e

    levels = None
    levels_file = _levels_path(path)
    if levels_file.exists():
        with open(levels_file, "r") as f:
            levels = {int(k): v for k, v in json.load(f).items()}
        logger.debug(f"Loaded {len(levels)} category levels from {levels_file}")

    raster = Raster.from_array(
        arr, transform=transform, crs=crs, nodata=nodata,
        levels=levels, name=name or path.stem
    )
    logger.info(f"Loaded raster with shape {raster.shape}, {int(raster.valid_mask.sum())} valid cells")
    return raster


def save_raster(
    raster: Raster,
    output_path: PathLike,
    driver: Optional[str] = None,
    dtype: Optional[str] = None
) -> str:
    """
    Write a raster to file with rasterio.

    NaN cells are written as the raster's nodata value. Category levels are
    written to a ``<file>.levels.json`` sidecar.

    Returns
    -------
    str
        Path of the written raster.
    """
    driver = driver or RASTER_CONFIG.get("driver", "GTiff")
    dtype = dtype or RASTER_CONFIG.get("dtype", "float64")
    _ensure_parent(output_path)

    data = np.where(raster.valid_mask, raster.values, raster.nodata).astype(dtype)

    with rasterio.open(
        output_path,
        "w",
        driver=driver,
        height=raster.nrows,
        width=raster.ncols,
        count=1,
        dtype=dtype,
        crs=raster.crs,
        transform=raster.transform,
        nodata=raster.nodata,
    ) as dst:
        dst.write(data, 1)

    levels_file = _levels_path(output_path)
    if raster.is_categorical:
        with open(levels_file, "w") as f:
            json.dump({str(k): v for k, v in raster.levels.items()}, f, indent=2)
    elif levels_file.exists():
        # Levels left by an earlier categorical raster at this path
        os.remove(levels_file)
        logger.debug(f"Removed stale category levels {levels_file}")

    logger.info(f"Saved raster '{raster.name}' to {output_path}")
    return str(output_path)


def _write_csv(df: pd.DataFrame, output_path: PathLike) -> None:
    chunk_size = EXPORT_CONFIG.get("chunk_size", 10000)

    if EXPORT_CONFIG.get("chunk_export", True) and len(df) > chunk_size:
        n_chunks = (len(df) + chunk_size - 1) // chunk_size
        logger.info(f"Exporting {len(df)} rows in {n_chunks} chunks of size {chunk_size}")

        df.iloc[:chunk_size].to_csv(output_path, index=False)
        for i in tqdm(range(1, n_chunks), desc="Exporting", disable=n_chunks < 3):
            start_idx = i * chunk_size
            end_idx = min((i + 1) * chunk_size, len(df))
            df.iloc[start_idx:end_idx].to_csv(output_path, mode="a", header=False, index=False)
    else:
        logger.info(f"Exporting {len(df)} rows to {output_path}")
        df.to_csv(output_path, index=False)

    if EXPORT_CONFIG.get("compress_output", False):
        logger.info("Compressing output file")
        with open(output_path, "rb") as f_in:
            with gzip.open(f"{output_path}.gz", "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)

        if EXPORT_CONFIG.get("remove_original_after_compression", False):
            os.remove(output_path)
            logger.info("Removed original file after compression")


def export_table(frame: Frame, output_path: PathLike) -> str:
    """
    Export a table.

    Parameters
    ----------
    frame : DataFrame or GeoDataFrame
        Table to export.
    output_path : str or Path
        Destination. ``.csv`` writes a CSV (geometry as WKT); ``.gpkg``,
        ``.geojson``, ``.json`` and ``.shp`` write a vector file and need a
        GeoDataFrame.

    Returns
    -------
    str
        Path of the written file.
    """
    suffix = Path(output_path).suffix.lower()
    _ensure_parent(output_path)
    geom = geometry_column(frame)

    if suffix in TABLE_SUFFIXES:
        df = pd.DataFrame(frame).copy()
        if geom is not None:
            df[geom] = frame.geometry.to_wkt()
        _write_csv(df, output_path)
    elif suffix in VECTOR_DRIVERS:
        if geom is None:
            raise ValueError(f"Cannot write a table without geometry to {suffix}; use .csv")
        driver = EXPORT_CONFIG.get("vector_driver") or VECTOR_DRIVERS[suffix]
        frame.to_file(output_path, driver=driver)
        logger.info(f"Exported {len(frame)} features to {output_path} ({driver})")
    else:
        raise ValueError(
            f"Unsupported output format '{suffix}'; "
            f"expected one of {list(TABLE_SUFFIXES) + list(VECTOR_DRIVERS)}"
        )

    return str(output_path)


def save_metadata(
    frame: Frame,
    output_path: PathLike,
    extra: Optional[Dict[str, Any]] = None
) -> str:
    """
    Save a description of a table (JSON, or YAML for .yaml/.yml paths).
    """
    return save_description(describe_table(frame), str(output_path), extra=extra)
