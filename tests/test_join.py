#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for attribute joins.
"""

import unittest
import numpy as np
import pandas as pd
import geopandas as gpd

from geo_attributes.vector import join
from tests.fixtures import create_coffee_data, create_world


class TestAttributeJoin(unittest.TestCase):
    """Test joining attribute tables to simple features."""

    def setUp(self):
        """Set up test fixtures."""
        self.world = create_world()
        self.coffee = create_coffee_data()

    def test_left_join_keeps_features(self):
        result = join.attribute_join(self.world, self.coffee, on="name_long")
        self.assertIsInstance(result, gpd.GeoDataFrame)
        self.assertEqual(len(result), len(self.world))
        self.assertEqual(result.crs, self.world.crs)
        self.assertEqual(list(result["name_long"]), list(self.world["name_long"]))
        self.assertEqual(list(result.index), list(range(len(self.world))))

        coffee = result.set_index("name_long")["coffee_production_2017"]
        self.assertEqual(coffee["Tanzania"], 66)
        self.assertEqual(coffee["Fiji"], 2)
        self.assertTrue(np.isnan(coffee["France"]))

    def test_shared_columns_by_default(self):
        result = join.attribute_join(self.world, self.coffee)
        self.assertIn("coffee_production_2016", result.columns)
        self.assertEqual(len(result), len(self.world))

    def test_inner_join(self):
        result = join.attribute_join(self.world, self.coffee, on="name_long", how="inner")
        self.assertEqual(list(result["name_long"]), ["Tanzania", "Fiji"])
        self.assertIsInstance(result, gpd.GeoDataFrame)

    def test_geometry_stays_last(self):
        result = join.attribute_join(self.world, self.coffee, on="name_long")
        self.assertEqual(result.geometry.name, "geometry")
        self.assertTrue(result.geometry.geom_equals(self.world.geometry).all())

    def test_spatial_join_type_restricted(self):
        with self.assertRaises(ValueError):
            join.attribute_join(self.world, self.coffee, on="name_long", how="outer")

    def test_table_outer_join(self):
        table = pd.DataFrame(self.world.drop(columns="geometry"))
        result = join.attribute_join(table, self.coffee, on="name_long", how="outer")
        self.assertEqual(len(result), 9)
        self.assertIn("Brazil", set(result["name_long"]))

    def test_different_key_names(self):
        coffee = self.coffee.rename(columns={"name_long": "country"})
        result = join.attribute_join(self.world, coffee, left_on="name_long", right_on="country")
        self.assertNotIn("country", result.columns)
        self.assertEqual(result.set_index("name_long")["coffee_production_2016"]["Tanzania"], 81)

    def test_right_geometry_dropped(self):
        result = join.attribute_join(self.world, self.world[["name_long", "pop", "geometry"]], on="name_long")
        self.assertEqual(list(result.columns).count("geometry"), 1)
        self.assertIn("pop_right", result.columns)

    def test_missing_key(self):
        with self.assertRaises(KeyError):
            join.attribute_join(self.world, self.coffee, on="iso_a2")

    def test_no_shared_columns(self):
        other = pd.DataFrame({"code": ["TZ"], "value": [1]})
        with self.assertRaises(ValueError):
            join.attribute_join(self.world, other)

    def test_key_type_mismatch(self):
        left = pd.DataFrame({"id": [1, 2, 3], "a": [10, 20, 30]})
        right = pd.DataFrame({"id": ["1", "2"], "b": ["x", "y"]})
        with self.assertRaises(TypeError):
            join.attribute_join(left, right, on="id")

        result = join.attribute_join(left, right, on="id", coerce_keys=True)
        self.assertEqual(list(result["b"].iloc[:2]), ["x", "y"])
        self.assertTrue(pd.isna(result["b"].iloc[2]))

    def test_validate(self):
        doubled = pd.concat([self.coffee, self.coffee], ignore_index=True)
        with self.assertRaises(ValueError):
            join.attribute_join(self.world, doubled, on="name_long", validate="many_to_one")

    def test_left_join_warns_about_dropped_keys(self):
        with self.assertLogs("geo_attributes", level="WARNING") as captured:
            join.attribute_join(self.world, self.coffee, on="name_long")
        message = "\n".join(captured.output)
        self.assertIn("2 key(s)", message)
        self.assertIn("Brazil", message)

    def test_inputs_not_modified(self):
        before = self.coffee.copy()
        join.attribute_join(self.world, self.coffee, on="name_long")
        self.assertTrue(self.coffee.equals(before))


class TestKeyHelpers(unittest.TestCase):
    """Test reporting and fixing of unmatched keys."""

    def setUp(self):
        """Set up test fixtures."""
        self.world = create_world()
        self.coffee = create_coffee_data()

    def test_unmatched_right(self):
        missing = join.unmatched_keys(self.world, self.coffee, on="name_long")
        self.assertEqual(missing, ["Congo, Dem. Rep. of", "Brazil"])

    def test_unmatched_left(self):
        missing = join.unmatched_keys(self.world, self.coffee, on="name_long", side="left")
        self.assertEqual(len(missing), 5)
        self.assertNotIn("Tanzania", missing)

    def test_unmatched_bad_side(self):
        with self.assertRaises(ValueError):
            join.unmatched_keys(self.world, self.coffee, on="name_long", side="both")

    def test_find_key_candidates(self):
        found = join.find_key_candidates(self.world["name_long"], "congo")
        self.assertEqual(found, ["Democratic Republic of the Congo"])

        self.assertEqual(join.find_key_candidates(self.world["name_long"], "congo", case=True), [])

    def test_recode_then_join(self):
        fixed = join.recode_keys(
            self.coffee, "name_long",
            {"Congo, Dem. Rep. of": "Democratic Republic of the Congo"}
        )
        self.assertEqual(self.coffee["name_long"].iloc[1], "Congo, Dem. Rep. of")

        result = join.attribute_join(self.world, fixed, on="name_long", how="inner")
        self.assertEqual(len(result), 3)
        self.assertEqual(join.unmatched_keys(self.world, fixed, on="name_long"), ["Brazil"])


if __name__ == '__main__':
    unittest.main()
