#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Geo Attributes Package.

A Python toolbox for attribute data operations on geographic data: subsetting,
aggregating and joining the attribute tables of simple features, deriving new
attributes, and building and querying rasters cell by cell.
"""

__version__ = "0.1.0"
__author__ = "Geo Attributes Team"
__email__ = "user@example.com"
