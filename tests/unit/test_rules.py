"""
Unit tests for rule helpers and domain models.
"""

import pytest

from domain.models import ExtractionType, SuggestedAction, ValidationData, ValidationResult
from domain.rules import (
    is_product_match,
    matches_product_name,
    matches_product_category,
    get_teeth_with_status,
    get_abutment_count,
    get_missing_count,
    get_implant_count,
    validate_teeth_count,
    find_teeth_without_status,
    find_teeth_with_status,
    find_teeth_outside_types,
    find_teeth_of_types,
    fill_template,
    pluralize_tooth,
)


# ==================== Product matching ====================


def test_wildcard_matches_everything():
    """Test "*" applies to every product."""
    assert is_product_match("*", "Anything")
    assert is_product_match(["Crown", "*"], "Night Guard")


def test_matches_product_name_substring_case_insensitive():
    """Test rule name as substring of product name."""
    assert matches_product_name("crown", "Zirconia Crown")
    assert matches_product_name(["Bridge", "Crown"], "PFM CROWN")
    assert not matches_product_name("Bridge", "Zirconia Crown")


def test_matches_product_category_fallback():
    """Test category synonyms."""
    assert matches_product_category("Crown rules", "Zirconia Onlay")
    assert matches_product_category(["Bridge"], "3-unit FPD")
    assert matches_product_category("Night guard", "Hard occlusal guard")
    assert not matches_product_category("Crown", "Full Denture")


def test_is_product_match_order():
    """Test exact match, then category, then no match."""
    assert is_product_match("Full Arch", "Full Arch Hybrid")
    assert is_product_match("Denture", "Complete denture upper")
    assert not is_product_match("Veneer", "Full Arch Hybrid")


# ==================== Counting ====================


@pytest.fixture
def statuses():
    """Sample tooth statuses."""
    return {
        1: "Prepped",
        2: "Teeth in mouth",
        3: "Missing teeth",
        4: "Implant",
        5: "Implant",
    }


def test_get_teeth_with_status(statuses):
    assert get_teeth_with_status(statuses, "Implant") == [4, 5]


def test_counts_only_selected_teeth(statuses):
    """Test counts ignore unselected teeth."""
    assert get_abutment_count(statuses, [1, 2, 3]) == 2
    assert get_abutment_count(statuses, [1]) == 1
    assert get_missing_count(statuses, [1, 2, 3]) == 1
    assert get_implant_count(statuses, [4]) == 1
    assert get_implant_count(statuses, [4, 5]) == 2


def test_validate_teeth_count():
    """Test exact overrides min/max."""
    assert validate_teeth_count([1, 2], min_count=1, max_count=3)
    assert not validate_teeth_count([1], min_count=2)
    assert not validate_teeth_count([1, 2, 3, 4], max_count=3)
    assert validate_teeth_count([1, 2], min_count=5, exact_count=2)
    assert not validate_teeth_count([1, 2, 3], exact_count=2)


def test_status_filters(statuses):
    """Test required/forbidden status helpers."""
    assert find_teeth_without_status(statuses, [1, 3, 9], ["Prepped"]) == [3, 9]
    assert find_teeth_with_status(statuses, [1, 3, 4], ["Implant", "Missing teeth"]) == [3, 4]


def test_tooth_type_filters():
    """Test tooth type helpers."""
    assert find_teeth_outside_types([8, 3, 14], ["anterior"]) == [3, 14]
    assert find_teeth_of_types([8, 3, 14], ["molar"]) == [3, 14]


def test_fill_template():
    """Test placeholder substitution."""
    assert fill_template("{minNumber} needed, {remainingNumber} left", minNumber=3, remainingNumber=1) == (
        "3 needed, 1 left"
    )
    assert fill_template("{unknown} stays", minNumber=3) == "{unknown} stays"
    assert fill_template("", minNumber=3) == ""


def test_pluralize_tooth():
    assert pluralize_tooth(1) == "tooth"
    assert pluralize_tooth(0) == "teeth"
    assert pluralize_tooth(2) == "teeth"


# ==================== Models ====================


def test_extraction_type_from_dict_defaults():
    """Test missing keys fall back to defaults."""
    extraction = ExtractionType.from_dict({"name": "Prepped", "is_default": "Yes", "min_teeth": "2"})

    assert extraction.default
    assert not extraction.required
    assert extraction.status == "Active"
    assert extraction.min_teeth == 2
    assert extraction.max_teeth is None
    assert extraction.is_eligible
    assert extraction.has_count_constraints


def test_extraction_type_eligibility():
    """Test eligibility needs Active status and a flag."""
    assert not ExtractionType(name="Implant").is_eligible  # No flag
    assert not ExtractionType(name="Implant", is_optional="Yes", status="Inactive").is_eligible
    assert ExtractionType(name="Implant", is_required="Yes").is_eligible


def test_extraction_type_requires_name():
    with pytest.raises(ValueError):
        ExtractionType(name="")


def test_suggested_action_validates_kind():
    """Test unknown action kinds are rejected."""
    action = SuggestedAction(label="Mark as Prepped", action="changeStatus", target_status="Prepped")
    assert action.to_dict() == {
        "label": "Mark as Prepped",
        "action": "changeStatus",
        "target_status": "Prepped",
    }

    with pytest.raises(ValueError):
        SuggestedAction(label="Nope", action="explode")


def test_validation_data_copies_inputs():
    """Test snapshot does not alias caller data."""
    selected = [1, 2]
    statuses = {1: "Prepped"}
    data = ValidationData.create(selected, statuses, "Crown", "maxillary",
                                 product_extractions=[{"name": "Prepped", "is_default": "Yes"}])

    selected.append(3)
    statuses[2] = "Implant"

    assert data.selected_teeth == (1, 2)
    assert data.tooth_statuses == {1: "Prepped"}
    assert isinstance(data.product_extractions[0], ExtractionType)


def test_validation_result_to_dict():
    """Test result serialization."""
    result = ValidationResult(
        is_valid=False,
        error_type="error",
        title="Bad",
        affected_teeth=[3],
        suggested_action=SuggestedAction(label="Fix", action="selectTeeth"),
    )

    data = result.to_dict()
    assert data["error_type"] == "error"
    assert data["affected_teeth"] == [3]
    assert data["suggested_action"] == {"label": "Fix", "action": "selectTeeth"}
    assert ValidationResult.passed().is_valid
