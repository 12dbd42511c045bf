"""
Domain layer for Archcheck.

This module contains core entities, tooth primitives, rule helpers,
validators and the per-session selection store.
No dependencies on storage, UI, or external frameworks.
"""

from .models import (
    ERROR,
    WARNING,
    INFO,
    ExtractionType,
    SuggestedAction,
    ValidationData,
    ValidationResult,
    ChartConfiguration,
    ValidationSummary,
    to_extraction_types,
)

from .exceptions import (
    ArchcheckBaseException,
    ValidationError,
    CatalogError,
    CacheError,
    NotFoundError,
    RuleConfigurationError,
)

from .teeth import (
    MAXILLARY,
    MANDIBULAR,
    ARCH_TYPES,
    MAXILLARY_TEETH,
    MANDIBULAR_TEETH,
    ALL_TEETH,
    TOOTH_TYPES,
    get_arch,
    get_arch_teeth,
    get_tooth_type,
    is_tooth_type,
    is_arch_continuous,
    is_arch_adjacent,
)

from .validators import (
    validate_tooth_number,
    validate_teeth,
    parse_teeth,
    validate_arch,
    validate_extraction_type_name,
    normalize_flag,
    normalize_status,
    validate_count_bound,
    validate_severity,
    validate_file_path,
)

from .rules import (
    PRODUCT_CATEGORIES,
    WILDCARD,
    is_product_match,
    matches_product_name,
    matches_product_category,
    fill_template,
)

from .selection_store import TeethSelectionStore
from .click_guard import ClickGuard

__all__ = [
    # Models
    "ERROR",
    "WARNING",
    "INFO",
    "ExtractionType",
    "SuggestedAction",
    "ValidationData",
    "ValidationResult",
    "ChartConfiguration",
    "ValidationSummary",
    "to_extraction_types",
    # Exceptions
    "ArchcheckBaseException",
    "ValidationError",
    "CatalogError",
    "CacheError",
    "NotFoundError",
    "RuleConfigurationError",
    # Teeth
    "MAXILLARY",
    "MANDIBULAR",
    "ARCH_TYPES",
    "MAXILLARY_TEETH",
    "MANDIBULAR_TEETH",
    "ALL_TEETH",
    "TOOTH_TYPES",
    "get_arch",
    "get_arch_teeth",
    "get_tooth_type",
    "is_tooth_type",
    "is_arch_continuous",
    "is_arch_adjacent",
    # Validators
    "validate_tooth_number",
    "validate_teeth",
    "parse_teeth",
    "validate_arch",
    "validate_extraction_type_name",
    "normalize_flag",
    "normalize_status",
    "validate_count_bound",
    "validate_severity",
    "validate_file_path",
    # Rules
    "PRODUCT_CATEGORIES",
    "WILDCARD",
    "is_product_match",
    "matches_product_name",
    "matches_product_category",
    "fill_template",
    # Session state
    "TeethSelectionStore",
    "ClickGuard",
]
