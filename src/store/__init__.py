"""Key/value cache layer.

This module stores endpoint, partition, and quad-tree index metadata
in an injected key/value cache shared by every client of a settings object.
"""
