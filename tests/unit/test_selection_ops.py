"""
Unit tests for selection workflow operations.
"""

import pytest

from data import create_cache
from domain.click_guard import ClickGuard
from domain.exceptions import ValidationError
from domain.selection_store import TeethSelectionStore
from operations.catalog_ops import filter_eligible_extraction_types
from operations.validation_ops import ValidationEngine
from operations.selection_ops import (
    build_tooth_statuses,
    build_validation_data,
    select_extraction_type,
    handle_tooth_click,
    mark_all_missing,
    get_total_selected_teeth,
    persist_selection,
    restore_selection,
)


CATALOG = [
    {"name": "Prepped", "is_default": "Yes"},
    {"name": "Implant", "is_optional": "Yes"},
    {"name": "Missing teeth", "is_required": "Yes"},
    {"name": "Teeth in mouth", "is_optional": "Yes"},
]


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def store():
    return TeethSelectionStore()


@pytest.fixture
def cache():
    cache = create_cache("sqlite", ":memory:")
    yield cache
    cache.close()


# ==================== Snapshots ====================


def test_build_tooth_statuses_last_writer_wins(store):
    store.set_teeth("Missing teeth", "maxillary", [1, 2, 3])
    store.set_teeth("Implant", "maxillary", [2])

    statuses = build_tooth_statuses(store, "maxillary")

    assert statuses == {1: "Missing teeth", 2: "Implant", 3: "Missing teeth"}


def test_build_tooth_statuses_limited_to_types(store):
    store.set_teeth("Missing teeth", "maxillary", [1])
    store.set_teeth("Crooked", "maxillary", [2])

    assert build_tooth_statuses(store, "maxillary", ["Missing teeth"]) == {1: "Missing teeth"}


def test_build_validation_data_defaults(store):
    """Test selection and implant count are derived from the store."""
    store.set_teeth("Implant", "maxillary", [3, 4])
    store.set_teeth("Prepped", "maxillary", [5])
    store.set_teeth("Prepped", "mandibular", [20])

    data = build_validation_data(store, "Zirconia Crown", "maxillary", CATALOG)

    assert data.selected_teeth == (3, 4, 5)
    assert data.tooth_statuses == {3: "Implant", 4: "Implant", 5: "Prepped"}
    assert data.implant_count == 2
    assert [e.name for e in data.product_extractions] == [c["name"] for c in CATALOG]


def test_build_validation_data_is_a_copy(store):
    store.set_teeth("Prepped", "maxillary", [5])
    data = build_validation_data(store, "Crown", "maxillary", CATALOG)

    store.set_teeth("Prepped", "maxillary", [6])

    assert data.selected_teeth == (5,)


def test_build_validation_data_skips_nameless_extractions(store):
    """Test a catalog the resolver accepts also validates."""
    extractions = [
        {"name": "Prepped", "is_default": "Yes"},
        {"name": "", "is_optional": "Yes"},
        {"name": "   ", "is_required": "Yes"},
    ]
    store.set_teeth("Prepped", "maxillary", [5])

    eligible = filter_eligible_extraction_types(extractions)
    data = build_validation_data(store, "Crown", "maxillary", extractions)

    assert [e.name for e in eligible] == ["Prepped"]
    assert [e.name for e in data.product_extractions] == ["Prepped"]
    assert ValidationEngine().validate_configuration(data) == []


# ==================== Card clicks ====================


def test_select_default_type_seeds_full_arch(store):
    """Test an empty default card takes every arch tooth."""
    changes = []

    active = select_extraction_type(
        store, "Prepped", "mandibular", CATALOG,
        on_selection_change=lambda teeth, arch: changes.append((teeth, arch)),
    )

    assert active == "Prepped"
    assert store.get_teeth("Prepped", "mandibular") == list(range(17, 33))
    assert changes == [(list(range(17, 33)), "mandibular")]


def test_select_teeth_in_mouth_seeds_full_arch(store):
    select_extraction_type(store, "Teeth in mouth", "maxillary", CATALOG)
    assert store.get_teeth("Teeth in mouth", "maxillary") == list(range(1, 17))


def test_select_optional_type_starts_empty(store):
    assert select_extraction_type(store, "Implant", "maxillary", CATALOG) == "Implant"
    assert store.get_teeth("Implant", "maxillary") == []


def test_select_uses_existing_statuses(store):
    """Test teeth already carrying the status are picked up."""
    select_extraction_type(store, "Implant", "maxillary", CATALOG, tooth_statuses={4: "Implant", 20: "Implant"})
    assert store.get_teeth("Implant", "maxillary") == [4]


def test_select_active_card_deactivates_and_keeps_teeth(store):
    store.set_teeth("Implant", "maxillary", [4])
    select_extraction_type(store, "Implant", "maxillary", CATALOG)

    assert select_extraction_type(store, "Implant", "maxillary", CATALOG) is None
    assert store.get_active_extraction_type() is None
    assert store.get_teeth("Implant", "maxillary") == [4]


def test_select_switches_single_active_type(store):
    select_extraction_type(store, "Implant", "maxillary", CATALOG)
    select_extraction_type(store, "Missing teeth", "maxillary", CATALOG)

    assert store.get_active_extraction_type() == "Missing teeth"


def test_select_debounced_click_is_ignored(store):
    """Test a double click inside the window does not toggle back."""
    clock = FakeClock()
    guard = ClickGuard(window_seconds=0.1, clock=clock)

    assert select_extraction_type(store, "Implant", "maxillary", CATALOG, guard=guard) == "Implant"
    clock.now = 0.05
    assert select_extraction_type(store, "Implant", "maxillary", CATALOG, guard=guard) == "Implant"
    clock.now = 0.2
    assert select_extraction_type(store, "Implant", "maxillary", CATALOG, guard=guard) is None


# ==================== Tooth clicks ====================


def test_tooth_click_toggles_for_active_type(store):
    store.set_active_extraction_type("Implant")

    assert handle_tooth_click(store, "maxillary", 4)
    assert store.get_teeth("Implant", "maxillary") == [4]


def test_tooth_click_without_active_type(store):
    assert handle_tooth_click(store, "maxillary", 4) is False


def test_tooth_click_rejects_wrong_arch(store):
    store.set_active_extraction_type("Implant")

    with pytest.raises(ValidationError):
        handle_tooth_click(store, "maxillary", 20)


def test_tooth_click_debounced(store):
    clock = FakeClock()
    guard = ClickGuard(window_seconds=0.1, clock=clock)
    store.set_active_extraction_type("Implant")

    assert handle_tooth_click(store, "maxillary", 4, guard=guard)
    assert handle_tooth_click(store, "maxillary", 4, guard=guard) is False
    assert store.get_teeth("Implant", "maxillary") == [4]


# ==================== Bulk operations ====================


def test_mark_all_missing_takes_teeth_from_other_types(store):
    store.set_teeth("Prepped", "maxillary", [1, 2, 3])
    store.set_teeth("Missing teeth", "maxillary", [9])

    assert mark_all_missing(store, "maxillary", [2, 3], CATALOG)

    assert store.get_teeth("Missing teeth", "maxillary") == [2, 3, 9]
    assert store.get_teeth("Prepped", "maxillary") == [1]


def test_mark_all_missing_requires_eligible_type(store):
    assert mark_all_missing(store, "maxillary", [2], [{"name": "Prepped", "is_default": "Yes"}]) is False
    assert store.get_teeth("Missing teeth", "maxillary") == []


def test_get_total_selected_teeth_counts_unique(store):
    store.set_teeth("Prepped", "maxillary", [1, 2])
    store.set_teeth("Implant", "maxillary", [2, 3])
    store.set_teeth("Crooked", "maxillary", [4])

    assert get_total_selected_teeth(store, "maxillary", ["Prepped", "Implant"]) == 3


# ==================== Persistence ====================


def test_persist_and_restore_selection(store, cache):
    store.set_teeth("Missing teeth", "maxillary", [1, 2])
    store.set_teeth("Implant", "maxillary", [2])

    assert persist_selection(store, cache, "case-1")

    restored = TeethSelectionStore()
    assert restore_selection(restored, cache, "case-1")
    assert restored.get_teeth("Implant", "maxillary") == [2]
    assert restored.get_teeth("Missing teeth", "maxillary") == [1]


def test_restore_without_snapshot(store, cache):
    assert restore_selection(store, cache, "unknown") is False


def test_cache_failure_is_reported_not_raised(store):
    """Test a closed cache leaves the store untouched."""
    broken = create_cache("sqlite", ":memory:")
    broken.close()
    store.set_teeth("Prepped", "maxillary", [1])

    assert persist_selection(store, broken, "case-1") is False
    assert restore_selection(store, broken, "case-1") is False
    assert store.get_teeth("Prepped", "maxillary") == [1]
