#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Core functionality for attribute operations.

This module contains the core components for reading and writing vector,
tabular and raster data, configuration management, and logging setup.
"""
