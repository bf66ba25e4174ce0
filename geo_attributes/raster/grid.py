#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Raster grid module.

This module provides `Raster`, a single-layer regular grid of cell values
georeferenced by an affine transform. Cells are addressed by (row, col)
from the top-left corner or by a cell number counting row by row from 0.
No-data cells hold NaN in memory and the `nodata` value on disk. A raster
may carry category labels (levels) for integer cell values.

Editing methods return a new raster and never modify the original.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from affine import Affine
from rasterio.coords import BoundingBox
from rasterio.crs import CRS
from rasterio.transform import array_bounds, from_bounds, from_origin

from geo_attributes.core.config import DEFAULT_NODATA_VALUE, RASTER_CONFIG
from geo_attributes.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)

CellIndex = Union[int, Sequence[int], np.ndarray]


class Raster:
    """
    Single-layer raster.

    Parameters
    ----------
    values : array-like
        2D array of cell values. NaN marks no-data cells.
    transform : affine.Affine, optional
        Transform from (col, row) to (x, y). Defaults to unit cells with
        the top-left corner at (0, nrows).
    crs : str, int or rasterio.crs.CRS, optional
        Coordinate reference system.
    nodata : float, optional
        Value written for no-data cells, by default -9999.0.
    levels : dict, optional
        Mapping of integer cell value to category label.
    name : str, optional
        Layer name.
    """

    def __init__(
        self,
        values: Any,
        transform: Optional[Affine] = None,
        crs: Optional[Any] = None,
        nodata: Optional[float] = None,
        levels: Optional[Dict[int, str]] = None,
        name: str = "layer"
    ):
        arr = np.array(values, dtype=RASTER_CONFIG.get("dtype", "float64"), copy=True)
        if arr.ndim != 2:
            raise ValueError(f"Raster values must be 2D, got shape {arr.shape}")
        if arr.size == 0:
            raise ValueError("Raster must have at least one cell")

        self.values = arr
        self.transform = transform if transform is not None else from_origin(0, arr.shape[0], 1, 1)
        self.crs = CRS.from_user_input(crs) if crs is not None else None
        self.nodata = DEFAULT_NODATA_VALUE if nodata is None else nodata
        self.levels = {int(k): str(v) for k, v in levels.items()} if levels else None
        self.name = name

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_extent(
        cls,
        nrows: int,
        ncols: int,
        xmin: float,
        xmax: float,
        ymin: float,
        ymax: float,
        values: Any = None,
        crs: Optional[Any] = None,
        **kwargs
    ) -> "Raster":
        """
        Create a raster from its dimensions and extent.

        Parameters
        ----------
        nrows, ncols : int
            Number of rows and columns.
        xmin, xmax, ymin, ymax : float
            Extent of the grid.
        values : scalar, sequence or 2D array, optional
            Cell values. A flat sequence fills the grid row by row from the
            top-left cell. Defaults to all no-data.
        crs : optional
            Coordinate reference system.
        **kwargs
            Passed to the constructor (`nodata`, `levels`, `name`).

        Returns
        -------
        Raster
            The new raster.

        Examples
        --------
        >>> r = Raster.from_extent(6, 6, -1.5, 1.5, -1.5, 1.5, values=range(36))
        >>> r.res
        (0.5, 0.5)
        """
        if nrows < 1 or ncols < 1:
            raise ValueError(f"Raster needs at least one row and column, got {nrows}x{ncols}")
        if xmax <= xmin or ymax <= ymin:
            raise ValueError(f"Invalid extent: x [{xmin}, {xmax}], y [{ymin}, {ymax}]")

        transform = from_bounds(xmin, ymin, xmax, ymax, ncols, nrows)
        arr = _fill_values(values, (nrows, ncols))
        logger.debug(f"Created {nrows}x{ncols} raster over [{xmin}, {xmax}] x [{ymin}, {ymax}]")
        return cls(arr, transform=transform, crs=crs, **kwargs)

    @classmethod
    def from_array(
        cls,
        array: Any,
        transform: Optional[Affine] = None,
        crs: Optional[Any] = None,
        nodata: Optional[float] = None,
        **kwargs
    ) -> "Raster":
        """
        Create a raster from a 2D array, turning `nodata` cells into NaN.
        """
        arr = np.array(array, dtype=RASTER_CONFIG.get("dtype", "float64"), copy=True)
        if nodata is not None and not np.isnan(nodata):
            arr[arr == nodata] = np.nan
        return cls(arr, transform=transform, crs=crs, nodata=nodata, **kwargs)

    @classmethod
    def categorical(cls, values: Any, levels: Dict[int, str], **kwargs) -> "Raster":
        """Create a categorical raster; cell values are keys of `levels`."""
        if not levels:
            raise ValueError("A categorical raster needs at least one category level")
        raster = cls.from_array(values, levels=levels, **kwargs)
        unknown = sorted(set(np.unique(raster.valid_values())) - set(raster.levels))
        if unknown:
            logger.warning(f"Cell value(s) {unknown} have no category label")
        return raster

    def copy(self) -> "Raster":
        return Raster(
            self.values, transform=self.transform, crs=self.crs,
            nodata=self.nodata, levels=self.levels, name=self.name
        )

    def _replace(self, values: np.ndarray, **changes) -> "Raster":
        params = dict(
            transform=self.transform, crs=self.crs, nodata=self.nodata,
            levels=self.levels, name=self.name
        )
        params.update(changes)
        return Raster(values, **params)

    # ------------------------------------------------------------------
    # Grid geometry
    # ------------------------------------------------------------------

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    @property
    def nrows(self) -> int:
        return self.values.shape[0]

    @property
    def ncols(self) -> int:
        return self.values.shape[1]

    @property
    def ncell(self) -> int:
        return int(self.values.size)

    @property
    def res(self) -> Tuple[float, float]:
        """Cell size as (x resolution, y resolution)."""
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def bounds(self) -> BoundingBox:
        west, south, east, north = array_bounds(self.nrows, self.ncols, self.transform)
        return BoundingBox(west, south, east, north)

    @property
    def valid_mask(self) -> np.ndarray:
        """Boolean mask, True for cells holding data."""
        return ~np.isnan(self.values)

    def valid_values(self) -> np.ndarray:
        """Flat array of the values of all data cells."""
        return self.values[self.valid_mask]

    # ------------------------------------------------------------------
    # Cell addressing
    # ------------------------------------------------------------------

    def _check_rowcol(self, row: Any, col: Any) -> Tuple[np.ndarray, np.ndarray]:
        rows = np.asarray(row)
        cols = np.asarray(col)
        if not (np.issubdtype(rows.dtype, np.integer) and np.issubdtype(cols.dtype, np.integer)):
            raise TypeError("Row and column indices must be integers")
        if np.any((rows < 0) | (rows >= self.nrows)) or np.any((cols < 0) | (cols >= self.ncols)):
            raise IndexError(
                f"Row/column ({row}, {col}) outside a {self.nrows}x{self.ncols} raster"
            )
        return rows, cols

    def _check_cells(self, cell: CellIndex) -> np.ndarray:
        cells = np.asarray(cell)
        if not np.issubdtype(cells.dtype, np.integer):
            raise TypeError("Cell numbers must be integers")
        if np.any((cells < 0) | (cells >= self.ncell)):
            raise IndexError(f"Cell number(s) {cell} outside 0..{self.ncell - 1}")
        return cells

    def cell_from_rowcol(self, row: Any, col: Any) -> Any:
        """Cell number of (row, col); accepts scalars or arrays."""
        rows, cols = self._check_rowcol(row, col)
        cells = rows * self.ncols + cols
        return int(cells) if cells.ndim == 0 else cells

    def rowcol_from_cell(self, cell: CellIndex) -> Tuple[Any, Any]:
        """(row, col) of a cell number; accepts scalars or arrays."""
        cells = self._check_cells(cell)
        rows, cols = np.divmod(cells, self.ncols)
        if cells.ndim == 0:
            return int(rows), int(cols)
        return rows, cols

    def xy(self, row: Any, col: Any) -> Tuple[Any, Any]:
        """Coordinates of the centre of cell (row, col)."""
        rows, cols = self._check_rowcol(row, col)
        t = self.transform
        # Affine transform: x = a*col + b*row + c, y = d*col + e*row + f
        c = cols + 0.5
        r = rows + 0.5
        x = t.a * c + t.b * r + t.c
        y = t.d * c + t.e * r + t.f
        if np.ndim(x) == 0:
            return float(x), float(y)
        return x, y

    def rowcol(self, x: float, y: float) -> Tuple[int, int]:
        """
        (row, col) of the cell containing point (x, y).

        Points on the outer right or bottom edge belong to the last
        column or row.

        Raises
        ------
        IndexError
            If the point lies outside the raster.
        """
        col_f, row_f = ~self.transform * (x, y)
        row = int(np.floor(row_f))
        col = int(np.floor(col_f))
        if row == self.nrows and np.isclose(row_f, self.nrows):
            row -= 1
        if col == self.ncols and np.isclose(col_f, self.ncols):
            col -= 1
        if not (0 <= row < self.nrows and 0 <= col < self.ncols):
            raise IndexError(f"Point ({x}, {y}) lies outside the raster bounds {tuple(self.bounds)}")
        return row, col

    def cell_from_xy(self, x: float, y: float) -> int:
        row, col = self.rowcol(x, y)
        return row * self.ncols + col

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def __getitem__(self, key: Any) -> Any:
        if not isinstance(key, tuple) or len(key) != 2:
            raise IndexError("Index a raster with [row, col]; use value_at_cell for cell numbers")
        row, col = key
        if isinstance(row, (int, np.integer)) and isinstance(col, (int, np.integer)):
            self._check_rowcol(row, col)
            return float(self.values[row, col])
        return self.values[row, col].copy()

    def value_at_cell(self, cell: int) -> float:
        """Value of a single cell by cell number."""
        cells = self._check_cells(cell)
        return float(self.values.flat[int(cells)])

    def values_at_cells(self, cells: CellIndex) -> np.ndarray:
        """Values of several cells by cell number."""
        return self.values.ravel()[self._check_cells(cells)]

    def value_at_xy(self, x: float, y: float) -> float:
        row, col = self.rowcol(x, y)
        return float(self.values[row, col])

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def set_cells(self, cells: CellIndex, value: Any) -> "Raster":
        """
        Return a copy with the given cells set to `value`.

        `value` is a scalar or one value per cell; None or NaN clears the
        cells to no-data.
        """
        idx = self._check_cells(cells)
        new = self.values.copy()
        flat = new.reshape(-1)
        flat[idx] = np.nan if value is None else value
        return self._replace(new)

    def set_values(self, values: Any) -> "Raster":
        """Return a copy with all cell values replaced (scalar, flat or 2D)."""
        return self._replace(_fill_values(values, self.shape))

    def with_nodata(self, value: float) -> "Raster":
        """Return a copy that treats `value` as no-data, both in memory and on disk."""
        new = self.values.copy()
        if not np.isnan(value):
            new[new == value] = np.nan
        return self._replace(new, nodata=value)

    def replace_values(self, mapping: Dict[float, float]) -> "Raster":
        """Return a copy with cell values reclassified through `mapping`."""
        new = self.values.copy()
        for old, replacement in mapping.items():
            new[self.values == old] = np.nan if replacement is None else replacement
        return self._replace(new)

    def set_levels(self, levels: Optional[Dict[int, str]]) -> "Raster":
        """Return a copy with new category labels (None removes them)."""
        return self._replace(self.values, levels=levels)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @property
    def is_categorical(self) -> bool:
        return bool(self.levels)

    def category(self, value: float) -> Optional[str]:
        """
        Label of a cell value. No-data gives None.

        Raises
        ------
        ValueError
            If the raster has no levels.
        KeyError
            If the value has no label.
        """
        if not self.is_categorical:
            raise ValueError(f"Raster '{self.name}' has no category levels")
        if value is None or np.isnan(value):
            return None
        key = int(value)
        if key != value or key not in self.levels:
            raise KeyError(f"No category for value {value}")
        return self.levels[key]

    def categories(self) -> List[str]:
        """Category labels ordered by cell value."""
        if not self.is_categorical:
            return []
        return [self.levels[k] for k in sorted(self.levels)]

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_frame(self, dropna: bool = False) -> pd.DataFrame:
        """
        One row per cell with cell number, row, col, centre x/y and value.

        Categorical rasters get an extra ``category`` column.
        """
        rows, cols = np.divmod(np.arange(self.ncell), self.ncols)
        x, y = self.xy(rows, cols)
        frame = pd.DataFrame({
            "cell": np.arange(self.ncell),
            "row": rows,
            "col": cols,
            "x": x,
            "y": y,
            "value": self.values.ravel(),
        })
        if self.is_categorical:
            frame["category"] = frame["value"].map(
                lambda v: self.levels.get(int(v)) if not np.isnan(v) and float(v).is_integer() else None
            )
        if dropna:
            frame = frame[frame["value"].notna()].reset_index(drop=True)
        return frame

    def __repr__(self) -> str:
        return (
            f"Raster(name={self.name!r}, shape={self.shape}, res={self.res}, "
            f"crs={self.crs.to_string() if self.crs else None}, "
            f"categorical={self.is_categorical})"
        )


def _fill_values(values: Any, shape: Tuple[int, int]) -> np.ndarray:
    """Build a 2D value array of `shape` from a scalar, flat sequence or 2D array."""
    dtype = RASTER_CONFIG.get("dtype", "float64")
    if values is None:
        return np.full(shape, np.nan, dtype=dtype)
    if np.isscalar(values):
        return np.full(shape, values, dtype=dtype)

    arr = np.asarray(list(values) if isinstance(values, range) else values, dtype=dtype)
    nrows, ncols = shape
    if arr.ndim == 1:
        if arr.size != nrows * ncols:
            raise ValueError(f"Got {arr.size} values for {nrows * ncols} cells")
        return arr.reshape(shape).copy()
    if arr.shape != shape:
        raise ValueError(f"Values have shape {arr.shape}, expected {shape}")
    return arr.copy()
