#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Raster attribute operations.

This package contains the single-layer `Raster` grid (construction, cell
addressing, cell access and editing, categorical levels) and summary
statistics over raster cell values.
"""
from geo_attributes.raster.grid import Raster

__all__ = ["Raster"]
