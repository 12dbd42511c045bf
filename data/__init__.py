"""
Data layer for Archcheck.

This module provides session cache access through the SessionCacheInterface
abstraction. Use create_cache() factory function to get a cache instance.
"""

from pathlib import Path
from typing import Literal, Union

from .interface import SessionCacheInterface
from .sqlite_db import SQLiteSessionCache


def create_cache(
    backend: Literal["sqlite"] = "sqlite",
    path: Union[str, Path] = "./archcheck_cache.db",
) -> SessionCacheInterface:
    """
    Factory function to create session cache instance.

    Args:
        backend: Cache backend to use (currently only "sqlite")
        path: Path to cache file (for SQLite), ":memory:" for tests

    Returns:
        SessionCacheInterface implementation

    Example:
        >>> cache = create_cache("sqlite", ":memory:")
        >>> cache.get_product_extractions("12")
    """
    if backend == "sqlite":
        return SQLiteSessionCache(path)
    else:
        raise ValueError(f"Unknown cache backend: {backend}")


__all__ = [
    "SessionCacheInterface",
    "SQLiteSessionCache",
    "create_cache",
]
