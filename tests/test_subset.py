#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for attribute subsetting.
"""

import unittest
import numpy as np
import geopandas as gpd

from geo_attributes.vector import subset as sub
from tests.fixtures import create_world


class TestSelectColumns(unittest.TestCase):
    """Test column selection and geometry stickiness."""

    def setUp(self):
        """Set up test fixtures."""
        self.world = create_world()

    def test_geometry_is_sticky(self):
        result = sub.select_columns(self.world, ["name_long", "pop"])
        self.assertIsInstance(result, gpd.GeoDataFrame)
        self.assertEqual(list(result.columns), ["name_long", "pop", "geometry"])
        self.assertEqual(result.crs, self.world.crs)

    def test_drop_geometry_on_select(self):
        result = sub.select_columns(self.world, "name_long", keep_geometry=False)
        self.assertNotIsInstance(result, gpd.GeoDataFrame)
        self.assertEqual(list(result.columns), ["name_long"])

    def test_unknown_column(self):
        with self.assertRaises(KeyError):
            sub.select_columns(self.world, ["name_long", "nope"])

    def test_drop_geometry(self):
        result = sub.drop_geometry(self.world)
        self.assertNotIsInstance(result, gpd.GeoDataFrame)
        self.assertNotIn("geometry", result.columns)
        self.assertEqual(len(result), len(self.world))

    def test_plain_table(self):
        table = sub.drop_geometry(self.world)
        result = sub.select_columns(table, ["pop"])
        self.assertEqual(list(result.columns), ["pop"])


class TestFilterRows(unittest.TestCase):
    """Test row filtering."""

    def setUp(self):
        """Set up test fixtures."""
        self.world = create_world()

    def test_query_string(self):
        result = sub.filter_rows(self.world, "area_km2 < 1000000")
        self.assertEqual(list(result.index), [0, 2, 4, 5])
        self.assertIsInstance(result, gpd.GeoDataFrame)

    def test_boolean_series(self):
        result = sub.filter_rows(self.world, self.world["continent"] == "Europe")
        self.assertEqual(list(result["name_long"]), ["France", "Germany"])

    def test_callable(self):
        result = sub.filter_rows(self.world, lambda df: df["pop"] > 70_000_000)
        self.assertEqual(set(result["name_long"]), {"Democratic Republic of the Congo", "Germany"})

    def test_missing_values_in_mask_are_false(self):
        mask = [True, None, np.nan, False, True, False, None]
        result = sub.filter_rows(self.world, mask)
        self.assertEqual(list(result.index), [0, 4])

    def test_wrong_length_mask(self):
        with self.assertRaises(ValueError):
            sub.filter_rows(self.world, [True, False])

    def test_input_not_modified(self):
        before = self.world.copy()
        sub.filter_rows(self.world, "continent == 'Africa'")
        self.assertTrue(self.world.equals(before))

    def test_filter_by_range(self):
        result = sub.filter_by_range(self.world, "lifeExp", lower=80)
        self.assertEqual(list(result["name_long"]), ["Australia", "France", "Germany"])

    def test_filter_by_range_exclusive(self):
        result = sub.filter_by_range(self.world, "lifeExp", lower=81.0, upper=82.6, inclusive="neither")
        self.assertEqual(list(result["name_long"]), ["Australia"])

    def test_filter_by_values(self):
        result = sub.filter_by_values(self.world, "continent", ["Oceania"])
        self.assertEqual(len(result), 2)


class TestSliceAndSubset(unittest.TestCase):
    """Test positional selection and the combined subset."""

    def setUp(self):
        """Set up test fixtures."""
        self.world = create_world()

    def test_single_position_returns_table(self):
        result = sub.slice_rows(self.world, 0)
        self.assertIsInstance(result, gpd.GeoDataFrame)
        self.assertEqual(len(result), 1)

    def test_slice(self):
        result = sub.slice_rows(self.world, slice(1, 3))
        self.assertEqual(list(result["name_long"]), ["Democratic Republic of the Congo", "Fiji"])

    def test_out_of_range(self):
        with self.assertRaises(IndexError):
            sub.slice_rows(self.world, [0, 10])

    def test_combined_subset(self):
        result = sub.subset(
            self.world,
            rows=[0],
            columns=["name_long"],
            condition="continent == 'Africa'"
        )
        self.assertEqual(list(result.columns), ["name_long", "geometry"])
        self.assertEqual(result["name_long"].iloc[0], "Tanzania")
        self.assertEqual(result.crs, self.world.crs)

    def test_subset_without_geometry(self):
        result = sub.subset(self.world, keep_geometry=False)
        self.assertNotIn("geometry", result.columns)
        self.assertEqual(len(result), len(self.world))

    def test_subset_returns_copy(self):
        result = sub.subset(self.world)
        self.assertIsNot(result, self.world)


if __name__ == '__main__':
    unittest.main()
