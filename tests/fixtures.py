#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Synthetic datasets shared by the test suite.

A small "world" of countries with square polygons, a coffee production table
whose country names do not all match, and small rasters.
"""
import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import box

from geo_attributes.raster.grid import Raster


def create_world() -> gpd.GeoDataFrame:
    """
    Create a world-like GeoDataFrame.

    Seven countries on four continents, each a unit square in EPSG:4326.
    Antarctica has no population or life expectancy.
    """
    data = {
        "name_long": [
            "Tanzania", "Democratic Republic of the Congo", "Fiji", "Australia",
            "France", "Germany", "Antarctica",
        ],
        "continent": ["Africa", "Africa", "Oceania", "Oceania", "Europe", "Europe", "Antarctica"],
        "pop": [50_000_000, 73_000_000, 885_000, 23_500_000, 66_000_000, 80_900_000, np.nan],
        "area_km2": [932_000, 2_323_000, 19_000, 7_687_000, 643_000, 357_000, 12_000_000],
        "lifeExp": [64.2, 58.8, 69.9, 82.3, 82.6, 81.0, np.nan],
    }
    geometry = [box(i * 2, 0, i * 2 + 1, 1) for i in range(len(data["name_long"]))]
    return gpd.GeoDataFrame(data, geometry=geometry, crs="EPSG:4326")


def create_coffee_data() -> pd.DataFrame:
    """Coffee production table; the Congo and Brazil rows have no match in the world."""
    return pd.DataFrame({
        "name_long": ["Tanzania", "Congo, Dem. Rep. of", "Brazil", "Fiji"],
        "coffee_production_2016": [81, 3, 3277, 1],
        "coffee_production_2017": [66, 12, 2680, 2],
    })


def create_sequence_raster() -> Raster:
    """6x6 raster over [-1.5, 1.5] with values 0..35 filled row by row."""
    return Raster.from_extent(6, 6, -1.5, 1.5, -1.5, 1.5, values=range(36), name="elev")


def create_grain_raster() -> Raster:
    """6x6 categorical raster with levels clay/silt/sand."""
    values = np.array([0, 1, 2] * 12).reshape(6, 6)
    return Raster.from_extent(
        6, 6, -1.5, 1.5, -1.5, 1.5, values=values,
        levels={0: "clay", 1: "silt", 2: "sand"}, name="grain"
    )
