"""Quad-tree tile addressing.

This module converts tile addresses between row/column/level,
Morton codes, and digit strings, and navigates the tree.
"""
