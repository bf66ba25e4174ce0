#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility modules for attribute operations.

This package contains general-purpose helpers and metadata handling
shared by the vector and raster modules.
"""
