"""
Selection Workflow Operations for Archcheck.

User-facing interactions on top of the selection store: extraction card
clicks, tooth clicks, bulk marking, snapshot building for the validation
engine, and persisting the session selection to the cache.

Pure functions with dependency injection - the store, cache and click
guard are always passed in.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from data.interface import SessionCacheInterface
from domain.click_guard import ClickGuard
from domain.exceptions import CacheError
from domain.models import ExtractionType, ValidationData
from domain.rules import STATUS_MISSING, STATUS_TEETH_IN_MOUTH, get_implant_count
from domain.selection_store import TeethSelectionStore
from domain.teeth import get_arch_teeth
from domain.validators import validate_arch, validate_teeth, validate_tooth_number
from operations.catalog_ops import filter_eligible_extraction_types, find_extraction_type

logger = logging.getLogger(__name__)

# callback(teeth, arch) - mirrors what a chart renderer needs
SelectionChangeCallback = Callable[[List[int], str], None]


def _names(extraction_types: Optional[Iterable[Any]]) -> Optional[List[str]]:
    if extraction_types is None:
        return None
    return [e.name if isinstance(e, ExtractionType) else str(e) for e in extraction_types]


def build_tooth_statuses(
    store: TeethSelectionStore,
    arch: str,
    extraction_types: Optional[Iterable[Any]] = None,
) -> Dict[int, str]:
    """
    Derive tooth -> extraction type name for one arch.

    On overlap the most recently written type wins, matching
    cleanup_overlaps().

    Args:
        store: Selection store
        arch: Arch to derive
        extraction_types: Limit to these types (names or ExtractionType)

    Returns:
        New dict, safe to mutate
    """
    allowed = _names(extraction_types)
    statuses: Dict[int, str] = {}
    for extraction_type in store.get_extraction_types(arch):
        if allowed is not None and extraction_type not in allowed:
            continue
        for tooth in store.get_teeth(extraction_type, arch):
            statuses[tooth] = extraction_type
    return statuses


def build_validation_data(
    store: TeethSelectionStore,
    product_name: str,
    arch: str,
    extractions: Optional[List[Any]],
    tooth_statuses: Optional[Dict[int, str]] = None,
    selected_teeth: Optional[Iterable[int]] = None,
    has_scans: bool = False,
    implant_count: Optional[int] = None,
) -> ValidationData:
    """
    Take a validation snapshot of the store for one arch.

    Args:
        store: Selection store
        product_name: Current product name
        arch: Arch to validate
        extractions: Product extraction catalog
        tooth_statuses: Externally tracked statuses (default: derived from store)
        selected_teeth: Teeth selected in the UI (default: all assigned teeth in arch)
        has_scans: Whether scans are attached to the case
        implant_count: Implant count (default: selected teeth with status "Implant")

    Returns:
        Frozen ValidationData, sharing nothing with the store
    """
    arch = validate_arch(arch)
    if tooth_statuses is None:
        tooth_statuses = build_tooth_statuses(store, arch)
    if selected_teeth is None:
        selected_teeth = store.get_all_teeth(arch)
    selected = sorted(set(selected_teeth))
    if implant_count is None:
        implant_count = get_implant_count(tooth_statuses, selected)

    return ValidationData.create(
        selected_teeth=selected,
        tooth_statuses=dict(tooth_statuses),
        product_name=product_name,
        arch_type=arch,
        has_scans=has_scans,
        implant_count=implant_count,
        product_extractions=extractions,
    )


def select_extraction_type(
    store: TeethSelectionStore,
    extraction_type_name: str,
    arch: str,
    extractions: Optional[List[Any]],
    guard: Optional[ClickGuard] = None,
    tooth_statuses: Optional[Dict[int, str]] = None,
    on_selection_change: Optional[SelectionChangeCallback] = None,
) -> Optional[str]:
    """
    Handle a click on an extraction type card.

    Clicking the active card deactivates it and keeps its teeth. Clicking
    another card activates it; if it has no teeth yet it receives the teeth
    already carrying that status, else every arch tooth when it is a default
    type or "Teeth in mouth", else nothing.

    Args:
        store: Selection store
        extraction_type_name: Clicked card
        arch: Arch of the card
        extractions: Product extraction catalog
        guard: Debounce guard (duplicate clicks are ignored)
        tooth_statuses: Externally tracked statuses (default: derived from store)
        on_selection_change: Called with (teeth, arch) for the card's teeth

    Returns:
        Active extraction type after the click (unchanged when debounced)
    """
    arch = validate_arch(arch)
    if guard is not None and not guard.try_acquire(("card", arch, extraction_type_name)):
        logger.debug(f"Ignoring duplicate click on card {extraction_type_name}")
        return store.get_active_extraction_type()

    if store.is_active_extraction_type(extraction_type_name):
        store.clear_active_extraction_type()
        if on_selection_change:
            on_selection_change(store.get_teeth(extraction_type_name, arch), arch)
        return None

    store.set_active_extraction_type(extraction_type_name)

    teeth = store.get_teeth(extraction_type_name, arch)
    if not teeth:
        if tooth_statuses is None:
            tooth_statuses = build_tooth_statuses(store, arch)
        arch_teeth = get_arch_teeth(arch)
        teeth = [t for t in arch_teeth if tooth_statuses.get(t) == extraction_type_name]

        if not teeth:
            extraction = find_extraction_type(extractions or [], extraction_type_name)
            is_default = extraction is not None and extraction.default
            if is_default or extraction_type_name == STATUS_TEETH_IN_MOUTH:
                teeth = arch_teeth

        store.set_teeth(extraction_type_name, arch, teeth, preserve_others=True)
        logger.debug(f"Card {extraction_type_name}/{arch} activated with {len(teeth)} teeth")

    if on_selection_change:
        on_selection_change(list(teeth), arch)
    return extraction_type_name


def handle_tooth_click(
    store: TeethSelectionStore,
    arch: str,
    tooth: int,
    guard: Optional[ClickGuard] = None,
) -> bool:
    """
    Toggle a tooth for the active extraction type.

    Returns:
        True if the selection changed

    Raises:
        ValidationError: If tooth is not in arch
    """
    arch = validate_arch(arch)
    tooth = validate_tooth_number(tooth, arch)

    if guard is not None and not guard.try_acquire(("tooth", arch, tooth)):
        logger.debug(f"Ignoring duplicate click on tooth {tooth}")
        return False

    return store.toggle_tooth(arch, tooth)


def mark_all_missing(
    store: TeethSelectionStore,
    arch: str,
    teeth: Iterable[int],
    extractions: Optional[List[Any]],
) -> bool:
    """
    Assign teeth to "Missing teeth", taking them from any other type.

    Returns:
        False if the product has no eligible "Missing teeth" type
    """
    arch = validate_arch(arch)
    eligible = _names(filter_eligible_extraction_types(extractions or []))
    if STATUS_MISSING not in eligible:
        logger.info(f"Product has no eligible '{STATUS_MISSING}' type, nothing marked")
        return False

    teeth = validate_teeth(teeth, arch)
    merged = sorted(set(store.get_teeth(STATUS_MISSING, arch)) | set(teeth))
    store.set_teeth(STATUS_MISSING, arch, merged, preserve_others=False)
    logger.info(f"Marked {len(teeth)} {arch} teeth as missing")
    return True


def get_total_selected_teeth(
    store: TeethSelectionStore,
    arch: str,
    extraction_types: Iterable[Any],
) -> int:
    """Count of unique teeth assigned to the product's types in arch."""
    teeth = set()
    for name in _names(extraction_types) or []:
        teeth.update(store.get_teeth(name, arch))
    return len(teeth)


def persist_selection(store: TeethSelectionStore, cache: SessionCacheInterface, session_id: str) -> bool:
    """
    Save the store snapshot to the session cache.

    Returns:
        False if the cache failed (logged, store untouched)
    """
    try:
        cache.save_selection_state(session_id, store.to_state())
    except CacheError as e:
        logger.error(f"Failed to persist selection for session {session_id}: {e}")
        return False
    logger.debug(f"Persisted selection for session {session_id}")
    return True


def restore_selection(store: TeethSelectionStore, cache: SessionCacheInterface, session_id: str) -> bool:
    """
    Fill empty parts of the store from the session cache.

    Returns:
        True if a snapshot was found and merged
    """
    try:
        state = cache.load_selection_state(session_id)
    except CacheError as e:
        logger.error(f"Failed to restore selection for session {session_id}: {e}")
        return False

    if not state:
        return False

    store.restore_state(state)
    store.cleanup_overlaps()
    return True
