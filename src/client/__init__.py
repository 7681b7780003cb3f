"""Catalog read clients.

This module resolves service endpoints and catalog versions, turns tile
and partition identifiers into data handles, and downloads blobs.
"""
