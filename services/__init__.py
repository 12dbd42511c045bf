"""
Services layer for Archcheck.

Infrastructure services that support operations and the CLI.
"""

from .catalog_reader import ExtractionCatalogReader

__all__ = [
    # Catalog Reader
    "ExtractionCatalogReader",
]
