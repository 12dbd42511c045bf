"""
Operations layer for Archcheck.

Catalog resolution, rule catalog, validation engine and selection
workflow - pure functions and small classes with dependency injection.
"""

from .catalog_ops import (
    filter_eligible_extraction_types,
    get_default_extraction_types,
    get_extraction_requirements,
    find_extraction_type,
    unwrap_extractions,
    get_base_product_id,
    explicit_provider,
    store_provider,
    base_id_provider,
    cache_provider,
    first_available_provider,
    default_provider_chain,
    resolve_extraction_catalog,
    register_product_extractions,
    seed_default_teeth,
)

from .rule_builder import (
    ValidationRule,
    GenericRuleConfig,
    build_generic_check,
    create_generic_rule,
    create_extraction_status_rule,
    VALIDATION_RULES,
    get_default_rules,
)

from .validation_ops import (
    ValidationEngine,
    summarize_results,
)

from .selection_ops import (
    build_tooth_statuses,
    build_validation_data,
    select_extraction_type,
    handle_tooth_click,
    mark_all_missing,
    get_total_selected_teeth,
    persist_selection,
    restore_selection,
)

__all__ = [
    # Catalog Operations
    "filter_eligible_extraction_types",
    "get_default_extraction_types",
    "get_extraction_requirements",
    "find_extraction_type",
    "unwrap_extractions",
    "get_base_product_id",
    "explicit_provider",
    "store_provider",
    "base_id_provider",
    "cache_provider",
    "first_available_provider",
    "default_provider_chain",
    "resolve_extraction_catalog",
    "register_product_extractions",
    "seed_default_teeth",
    # Rule Catalog
    "ValidationRule",
    "GenericRuleConfig",
    "build_generic_check",
    "create_generic_rule",
    "create_extraction_status_rule",
    "VALIDATION_RULES",
    "get_default_rules",
    # Validation Engine
    "ValidationEngine",
    "summarize_results",
    # Selection Workflow
    "build_tooth_statuses",
    "build_validation_data",
    "select_extraction_type",
    "handle_tooth_click",
    "mark_all_missing",
    "get_total_selected_teeth",
    "persist_selection",
    "restore_selection",
]
