"""Data ingestion collaborators.

This package fetches raw sources and parses them into column-shaped
data. The store layer consumes the parsed result without knowing which
importer or parser produced it.
"""
