#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for configuration and logging setup.
"""

import os
import logging
import tempfile
import unittest
from unittest import mock

from geo_attributes.core import config
from geo_attributes.core.logging_config import get_module_logger, setup_logging


class TestLoadConfig(unittest.TestCase):
    """Test YAML configuration overrides."""

    def setUp(self):
        """Set up test fixtures."""
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

        # Restore every section after each test
        for section in config.CONFIG_SECTIONS.values():
            patcher = mock.patch.dict(section)
            patcher.start()
            self.addCleanup(patcher.stop)

    def _write(self, text: str) -> str:
        path = os.path.join(self.tmp.name, "config.yaml")
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_override(self):
        path = self._write(
            "aggregate:\n"
            "  default_func: mean\n"
            "join:\n"
            "  how: inner\n"
            "  suffixes: ['_l', '_r']\n"
        )
        updated = config.load_config(path)
        self.assertEqual(sorted(updated), ["aggregate", "join"])
        self.assertEqual(config.AGGREGATE_CONFIG["default_func"], "mean")
        self.assertEqual(config.JOIN_CONFIG["how"], "inner")
        self.assertEqual(config.JOIN_CONFIG["suffixes"], ("_l", "_r"))
        # untouched keys keep their defaults
        self.assertTrue(config.AGGREGATE_CONFIG["dropna"])

    def test_empty_file(self):
        self.assertEqual(config.load_config(self._write("")), {})

    def test_unknown_section(self):
        with self.assertRaises(ValueError):
            config.load_config(self._write("plotting:\n  dpi: 300\n"))

    def test_section_not_mapping(self):
        with self.assertRaises(ValueError):
            config.load_config(self._write("join: left\n"))

    def test_not_mapping(self):
        with self.assertRaises(ValueError):
            config.load_config(self._write("- a\n- b\n"))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            config.load_config(os.path.join(self.tmp.name, "missing.yaml"))


class TestLogging(unittest.TestCase):
    """Test logger setup."""

    def test_module_logger_name(self):
        self.assertEqual(get_module_logger("geo_attributes.vector.join").name, "geo_attributes.vector.join")
        self.assertEqual(get_module_logger("custom").name, "geo_attributes.custom")

    def test_setup_logging_level(self):
        name = "geo_attributes_test_logger"
        logger = setup_logging("DEBUG", module_name=name)
        self.addCleanup(logger.handlers.clear)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(logger.handlers), 1)

        # a second call only changes the level
        setup_logging("WARNING", module_name=name)
        self.assertEqual(logger.level, logging.WARNING)
        self.assertEqual(len(logger.handlers), 1)

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "logs", "run.log")
            logger = setup_logging("INFO", log_file=path, module_name="geo_attributes_file_logger")
            logger.info("hello")
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
            with open(path) as f:
                self.assertIn("hello", f.read())

    def test_invalid_level(self):
        with self.assertRaises(ValueError):
            setup_logging("LOUD", module_name="geo_attributes_bad_logger")


if __name__ == '__main__':
    unittest.main()
