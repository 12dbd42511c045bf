"""
Path Configuration for Archcheck.

Centralized path management for the session cache.
"""

from pathlib import Path
import logging
import sys

from .constants import DEFAULT_CACHE_NAME

logger = logging.getLogger(__name__)


def get_app_root() -> Path:
    """
    Get application root directory.

    Returns:
        - Frozen executable: Directory where the executable is located
        - Development (script): Project root
    """
    if getattr(sys, 'frozen', False):
        app_root = Path(sys.executable).parent
        logger.debug(f"Running as executable, app root: {app_root}")
    else:
        # __file__ = .../config/paths.py, parent.parent = project root
        app_root = Path(__file__).parent.parent
        logger.debug(f"Running as script, app root: {app_root}")

    return app_root


def get_cache_dir() -> Path:
    """
    Get directory holding the session cache.

    Returns:
        {app_root}/cache (not created here, the cache creates it on open)
    """
    return get_app_root() / "cache"


def get_cache_path() -> Path:
    """
    Get session cache file path.

    Example:
        Development: /home/user/archcheck/cache/archcheck_cache.db
    """
    cache_path = get_cache_dir() / DEFAULT_CACHE_NAME
    logger.debug(f"Cache path: {cache_path}")
    return cache_path
