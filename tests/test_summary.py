#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for raster summaries.
"""

import unittest
import numpy as np

from geo_attributes.raster.grid import Raster
from geo_attributes.raster import summary
from tests.fixtures import create_grain_raster, create_sequence_raster


class TestSummarizeRaster(unittest.TestCase):
    """Test descriptive statistics of raster cells."""

    def test_sequence_statistics(self):
        stats = summary.summarize_raster(create_sequence_raster())
        self.assertEqual(stats["count"], 36)
        self.assertEqual(stats["nodata_count"], 0)
        self.assertEqual(stats["min"], 0.0)
        self.assertEqual(stats["max"], 35.0)
        self.assertAlmostEqual(stats["mean"], 17.5)
        self.assertAlmostEqual(stats["median"], 17.5)
        self.assertAlmostEqual(stats["skewness"], 0.0)
        self.assertEqual(stats["valid_percentage"], 100.0)

    def test_nodata_ignored(self):
        raster = create_sequence_raster().set_cells([0, 35], None)
        stats = summary.summarize_raster(raster)
        self.assertEqual(stats["count"], 34)
        self.assertEqual(stats["nodata_count"], 2)
        self.assertEqual(stats["min"], 1.0)
        self.assertEqual(stats["max"], 34.0)

    def test_all_nodata(self):
        raster = Raster.from_extent(2, 2, 0, 1, 0, 1)
        stats = summary.summarize_raster(raster)
        self.assertEqual(stats["count"], 0)
        self.assertTrue(np.isnan(stats["mean"]))

    def test_few_values(self):
        raster = Raster.from_array([[1.0, 2.0]])
        stats = summary.summarize_raster(raster)
        self.assertTrue(np.isnan(stats["skewness"]))
        self.assertTrue(np.isnan(stats["kurtosis"]))


class TestFrequencyAndHistogram(unittest.TestCase):
    """Test value counts and histograms."""

    def test_frequency_categorical(self):
        table = summary.frequency_table(create_grain_raster())
        self.assertEqual(table["value"].tolist(), [0.0, 1.0, 2.0])
        self.assertEqual(table["count"].tolist(), [12, 12, 12])
        self.assertEqual(table["category"].tolist(), ["clay", "silt", "sand"])

    def test_frequency_plain(self):
        raster = Raster.from_array([[1.0, 1.0], [2.0, np.nan]])
        table = summary.frequency_table(raster)
        self.assertNotIn("category", table.columns)
        self.assertEqual(table["count"].tolist(), [2, 1])

    def test_frequency_rounding(self):
        raster = Raster.from_array([[1.04, 1.01], [2.0, 2.02]])
        table = summary.frequency_table(raster, digits=1)
        self.assertEqual(table["value"].tolist(), [1.0, 2.0])

    def test_histogram(self):
        counts, edges = summary.histogram(create_sequence_raster(), bins=6)
        self.assertEqual(counts.tolist(), [6] * 6)
        self.assertEqual(len(edges), 7)

    def test_log_raster_stats(self):
        with self.assertLogs("geo_attributes.raster.summary", level="INFO") as captured:
            summary.log_raster_stats(create_grain_raster())
        self.assertTrue(any("Categories" in line for line in captured.output))


if __name__ == '__main__':
    unittest.main()
