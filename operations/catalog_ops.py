"""
Extraction Catalog Operations for Archcheck.

Resolves which extraction types a product exposes, which of them are
defaults, and seeds default assignments into the selection store.

Resolution tries an ordered chain of providers (explicit data, store by
product id, store by base id, session cache, first available) and stops at
the first one that yields data. No data from any source means no
extraction types for the product - callers must not invent fallbacks.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from data.interface import SessionCacheInterface
from domain.exceptions import CacheError
from domain.models import ExtractionType, to_extraction_types
from domain.selection_store import TeethSelectionStore
from domain.teeth import get_arch_teeth
from domain.rules import pluralize_tooth

logger = logging.getLogger(__name__)

# Provider: () -> Optional[list of raw extraction dicts / ExtractionType]
ExtractionProvider = Callable[[], Optional[List[Any]]]


def unwrap_extractions(payload: Any) -> Optional[List[Any]]:
    """
    Pull the extraction list out of the payload shapes the product API uses.

    Accepts a bare list, {"extractions": [...]} or {"data": {"extractions": [...]}}.
    """
    if payload is None:
        return None
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        if isinstance(payload.get("extractions"), list):
            return payload["extractions"]
        data = payload.get("data")
        if isinstance(data, dict) and isinstance(data.get("extractions"), list):
            return data["extractions"]
    return None


def get_base_product_id(product_id: str) -> Optional[str]:
    """
    Base id of a timestamped product id ("12-1699999999" -> "12").

    Returns None if the id carries no suffix.
    """
    if not product_id or "-" not in str(product_id):
        return None
    return str(product_id).split("-")[0]


# ==================== Filters ====================


def filter_eligible_extraction_types(extractions: Iterable[Any]) -> List[ExtractionType]:
    """
    Extraction types shown to the user and known to validation.

    Eligible iff status is Active and any of is_default / is_required /
    is_optional is "Yes". Input order is preserved.
    """
    return [e for e in to_extraction_types(extractions) if e.is_eligible]


def get_default_extraction_types(extractions: Iterable[Any]) -> List[str]:
    """Names of eligible extraction types flagged is_default."""
    return [e.name for e in filter_eligible_extraction_types(extractions) if e.default]


def get_extraction_requirements(extraction_type: ExtractionType) -> Optional[str]:
    """
    Human-readable count constraints.

    Example:
        min=1, max=2 -> "Min: 1 tooth, Max: 2 teeth"
    """
    parts = []
    if extraction_type.min_teeth is not None:
        parts.append(f"Min: {extraction_type.min_teeth} {pluralize_tooth(extraction_type.min_teeth)}")
    if extraction_type.max_teeth is not None:
        parts.append(f"Max: {extraction_type.max_teeth} {pluralize_tooth(extraction_type.max_teeth)}")
    return ", ".join(parts) if parts else None


def find_extraction_type(extractions: Iterable[Any], name: str) -> Optional[ExtractionType]:
    """Find extraction type by name (exact)."""
    for extraction in to_extraction_types(extractions):
        if extraction.name == name:
            return extraction
    return None


# ==================== Providers ====================


def explicit_provider(payload: Any) -> ExtractionProvider:
    """Provider for data handed directly by the caller."""
    return lambda: unwrap_extractions(payload)


def store_provider(store: TeethSelectionStore, product_id: str) -> ExtractionProvider:
    """Provider reading the store's product data by exact id."""
    def provide():
        if not product_id:
            return None
        return unwrap_extractions(store.get_product_extractions(product_id))
    return provide


def base_id_provider(store: TeethSelectionStore, product_id: str) -> ExtractionProvider:
    """Provider reading the store's product data by base id."""
    def provide():
        base_id = get_base_product_id(product_id)
        if not base_id:
            return None
        return unwrap_extractions(store.get_product_extractions(base_id))
    return provide


def cache_provider(cache: SessionCacheInterface, product_id: str) -> ExtractionProvider:
    """Provider reading the session cache by exact id, then base id."""
    def provide():
        if not product_id:
            return None
        extractions = cache.get_product_extractions(product_id)
        if not extractions:
            base_id = get_base_product_id(product_id)
            if base_id:
                extractions = cache.get_product_extractions(base_id)
        return extractions
    return provide


def first_available_provider(store: TeethSelectionStore) -> ExtractionProvider:
    """Last resort: first product in the store that has extraction data."""
    def provide():
        for stored_id in store.list_product_ids():
            extractions = unwrap_extractions(store.get_product_extractions(stored_id))
            if extractions:
                return extractions
        return None
    return provide


def default_provider_chain(
    store: TeethSelectionStore,
    product_id: Optional[str] = None,
    extraction_data: Any = None,
    cache: Optional[SessionCacheInterface] = None,
) -> List[ExtractionProvider]:
    """
    Build the standard provider chain, most specific source first.

    explicit data -> store (id) -> store (base id) -> cache -> first available.
    The first-available scan is only used when no product id is known.
    """
    providers: List[ExtractionProvider] = []
    if extraction_data is not None:
        providers.append(explicit_provider(extraction_data))
    if product_id:
        providers.append(store_provider(store, product_id))
        providers.append(base_id_provider(store, product_id))
        if cache is not None:
            providers.append(cache_provider(cache, product_id))
    else:
        providers.append(first_available_provider(store))
    return providers


def resolve_raw_extractions(providers: Sequence[ExtractionProvider]) -> List[Any]:
    """
    Run providers in order and return the first non-empty raw list.

    A provider that raises is logged and skipped.
    """
    for index, provider in enumerate(providers):
        try:
            extractions = provider()
        except (CacheError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Extraction provider #{index} failed: {e}")
            continue

        if extractions:
            logger.debug(f"Resolved {len(extractions)} extraction(s) from provider #{index}")
            return list(extractions)

    return []


def resolve_extraction_catalog(
    product_id: Optional[str],
    providers: Sequence[ExtractionProvider],
) -> List[ExtractionType]:
    """
    Resolve the eligible extraction types for a product.

    Args:
        product_id: Product id (for logging only)
        providers: Ordered provider chain (see default_provider_chain)

    Returns:
        Eligible extraction types, in catalog order. Empty list when no
        source has data or nothing is eligible.
    """
    raw = resolve_raw_extractions(providers)
    if not raw:
        logger.info(f"No extraction data for product {product_id}")
        return []

    eligible = filter_eligible_extraction_types(raw)
    logger.info(
        f"Product {product_id}: {len(eligible)}/{len(raw)} extraction type(s) eligible"
    )
    return eligible


# ==================== Store integration ====================


def register_product_extractions(
    store: TeethSelectionStore,
    product_id: str,
    extractions: List[Dict[str, Any]],
    cache: Optional[SessionCacheInterface] = None,
    product_name: Optional[str] = None,
) -> List[str]:
    """
    Remember a product's raw extraction list and its default type names.

    Writes to the store and, if given, to the session cache. A cache
    failure is logged and does not affect the store.

    Returns:
        Default extraction type names
    """
    store.set_product_extractions(product_id, extractions)
    defaults = get_default_extraction_types(extractions)
    store.set_default_extraction_types(product_id, defaults)

    if cache is not None:
        try:
            cache.save_product_extractions(product_id, extractions, product_name=product_name)
            cache.save_default_extraction_types(product_id, defaults)
        except CacheError as e:
            logger.warning(f"Could not cache extractions for product {product_id}: {e}")

    logger.debug(f"Registered {len(extractions)} extraction(s) for product {product_id}, defaults={defaults}")
    return defaults


def seed_default_teeth(
    store: TeethSelectionStore,
    product_id: str,
    extraction_types: Sequence[ExtractionType],
    arch: str,
) -> List[str]:
    """
    Assign all arch teeth to each default extraction type that has none yet.

    Happens once per (product, type, arch): after seeding, later user edits
    (including clearing the type) are never overwritten by another call.

    Args:
        store: Selection store
        product_id: Product id
        extraction_types: Eligible extraction types (resolver output)
        arch: Arch to seed

    Returns:
        Names of the types that were seeded by this call
    """
    if not extraction_types:
        return []

    seeded = []
    for extraction_type in extraction_types:
        if not extraction_type.default:
            continue
        name = extraction_type.name
        if store.was_seeded(product_id, name, arch):
            continue
        if store.has_teeth(name, arch):
            store.mark_seeded(product_id, name, arch)
            continue

        store.set_teeth(name, arch, get_arch_teeth(arch), preserve_others=True)
        store.mark_seeded(product_id, name, arch)
        seeded.append(name)
        logger.info(f"Auto-selected all {arch} teeth for default extraction type: {name}")

    return seeded
