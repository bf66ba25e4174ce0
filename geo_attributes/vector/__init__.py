#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Attribute operations on vector data.

This package contains modules for subsetting, aggregating, joining and
deriving the attributes of simple features held in GeoDataFrames, as well as
plain attribute tables held in DataFrames.
"""
