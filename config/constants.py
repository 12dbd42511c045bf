"""
Application constants for Archcheck.

Centralized location for all application-wide constants.
"""

from domain.teeth import (
    MAXILLARY,
    MANDIBULAR,
    ARCH_TYPES,
    MAXILLARY_TEETH,
    MANDIBULAR_TEETH,
    ALL_TEETH,
)
from domain.rules import PRODUCT_CATEGORIES

# ==================== Application Info ====================

APP_NAME = "Archcheck"
APP_VERSION = "1.0.0"

# ==================== File Extensions ====================

CATALOG_EXTENSIONS = [".xlsx", ".xls", ".csv"]

# ==================== Default Values ====================

# Cache filename (actual path computed by paths.get_cache_path())
DEFAULT_CACHE_NAME = "archcheck_cache.db"
DEFAULT_SESSION_ID = "default"
DEFAULT_LOG_LEVEL = "INFO"

# Duplicate clicks on the same control inside this window are ignored
CLICK_DEBOUNCE_MS = 100

# ==================== Error Messages ====================

ERROR_MESSAGES = {
    "invalid_settings": "Invalid settings: {error}",
    "invalid_catalog": "Invalid extraction catalog: {error}",
    "unknown_product": "Product {product_id} not found in catalog",
    "cache_error": "Session cache error: {error}",
    "validation_error": "Validation error: {error}",
}

# ==================== Success Messages ====================

SUCCESS_MESSAGES = {
    "catalog_loaded": "Loaded {count} product(s) from catalog",
    "validation_passed": "No validation issues for {product_name} ({arch})",
}

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "CATALOG_EXTENSIONS",
    "DEFAULT_CACHE_NAME",
    "DEFAULT_SESSION_ID",
    "DEFAULT_LOG_LEVEL",
    "CLICK_DEBOUNCE_MS",
    "ERROR_MESSAGES",
    "SUCCESS_MESSAGES",
    "MAXILLARY",
    "MANDIBULAR",
    "ARCH_TYPES",
    "MAXILLARY_TEETH",
    "MANDIBULAR_TEETH",
    "ALL_TEETH",
    "PRODUCT_CATEGORIES",
]
