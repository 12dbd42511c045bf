"""
Unit tests for the validation engine.
"""

import pytest

from domain.exceptions import NotFoundError, RuleConfigurationError
from domain.models import ValidationData, ValidationResult
from domain.selection_store import TeethSelectionStore
from operations.rule_builder import (
    EX1_ID,
    EX2_ID,
    GenericRuleConfig,
    ValidationRule,
    create_generic_rule,
)
from operations.validation_ops import (
    ValidationEngine,
    pick_first_by_severity,
    summarize_results,
)


CATALOG = [
    {"name": "Prepped", "is_default": "Yes", "status": "Active"},
    {"name": "Implant", "is_optional": "Yes", "status": "Active", "max_teeth": 2},
    {"name": "Missing teeth", "is_required": "Yes", "status": "Active", "min_teeth": 2},
]


def make_data(selected, statuses=None, product="Zirconia Crown", extractions=CATALOG, **kwargs):
    return ValidationData.create(
        selected_teeth=selected,
        tooth_statuses=statuses or {},
        product_name=product,
        arch_type="maxillary",
        product_extractions=extractions,
        **kwargs,
    )


def failing_rule(rule_id, severity, product="*", **flags):
    """Rule that always fails with its own severity."""
    return ValidationRule(
        id=rule_id,
        product_name=product,
        type=severity,
        title=f"{rule_id} title",
        message=f"{rule_id} message",
        check_function=lambda data: ValidationResult(is_valid=False, affected_teeth=[1]),
        **flags,
    )


def passing_rule(rule_id, product="*"):
    return ValidationRule(
        id=rule_id,
        product_name=product,
        type="error",
        title="ok",
        message="ok",
        check_function=lambda data: ValidationResult.passed(),
    )


# ==================== Administration ====================


def test_default_engine_has_extraction_rules():
    engine = ValidationEngine()
    assert [rule.id for rule in engine.get_rules()] == [EX1_ID, EX2_ID]


def test_add_rule_rejects_duplicate_id():
    engine = ValidationEngine(rules=[])
    engine.add_rule(passing_rule("R1"))

    with pytest.raises(RuleConfigurationError):
        engine.add_rule(passing_rule("R1"))


def test_remove_rule():
    engine = ValidationEngine(rules=[passing_rule("R1"), passing_rule("R2")])

    engine.remove_rule("R1")

    assert [rule.id for rule in engine.get_rules()] == ["R2"]
    with pytest.raises(NotFoundError):
        engine.remove_rule("R1")


def test_get_rules_for_product_matching():
    """Test wildcard, substring and category matching."""
    engine = ValidationEngine(rules=[
        passing_rule("ALL"),
        passing_rule("CROWN", product="Crown rules"),
        passing_rule("BRIDGE", product=["Bridge"]),
        passing_rule("NAMED", product="Zirconia"),
    ])

    ids = [rule.id for rule in engine.get_rules_for_product("Zirconia Onlay")]

    assert ids == ["ALL", "CROWN", "NAMED"]


def test_chart_configuration_is_or_of_applicable_rules():
    engine = ValidationEngine(rules=[
        failing_rule("A", "info", product="Denture", lock_chart=True),
        failing_rule("B", "info", product="Denture", scan_required=True),
        failing_rule("C", "info", product="Crown", hide_chart=True),
    ])

    config = engine.get_chart_configuration("Full Denture")

    assert config.lock_chart
    assert config.scan_required
    assert not config.hide_chart
    assert not config.auto_select_full_arch


# ==================== Execution ====================


def test_valid_configuration_returns_empty():
    engine = ValidationEngine()
    data = make_data([1, 2, 3], {1: "Prepped", 2: "Prepped", 3: "Implant"})

    assert engine.validate_configuration(data) == []
    assert engine.validate_and_get_first_error(data) is None


def test_results_filled_from_rule_and_tagged():
    """Test missing result fields come from the rule."""
    engine = ValidationEngine(rules=[failing_rule("R1", "warning")])

    [result] = engine.validate_configuration(make_data([1]))

    assert result.error_type == "warning"
    assert result.title == "R1 title"
    assert result.message == "R1 message"
    assert result.rule_id == "R1"


def test_broken_rule_is_skipped():
    """Test a raising rule is logged and treated as passed."""
    def explode(data):
        raise KeyError("boom")

    broken = ValidationRule(id="BROKEN", product_name="*", type="error", title="t", message="m",
                            check_function=explode)
    engine = ValidationEngine(rules=[broken, failing_rule("R2", "info")])

    results = engine.validate_configuration(make_data([1]))

    assert [r.rule_id for r in results] == ["R2"]


def test_first_error_prefers_severity_over_catalog_order():
    """Test an error beats earlier warnings and infos."""
    engine = ValidationEngine(rules=[
        failing_rule("INFO", "info"),
        failing_rule("WARN", "warning"),
        failing_rule("ERR1", "error"),
        failing_rule("ERR2", "error"),
    ])

    assert engine.validate_and_get_first_error(make_data([1])).rule_id == "ERR1"


def test_first_error_falls_back_to_warning():
    engine = ValidationEngine(rules=[failing_rule("INFO", "info"), failing_rule("WARN", "warning")])
    assert engine.validate_and_get_first_error(make_data([1])).rule_id == "WARN"


def test_non_applicable_rules_do_not_run():
    engine = ValidationEngine(rules=[failing_rule("DENTURE", "error", product="Denture")])
    assert engine.validate_configuration(make_data([1], product="Zirconia Crown")) == []


def test_generic_rule_through_engine():
    rule = create_generic_rule(GenericRuleConfig(
        id="MIN2",
        product_name="Bridge",
        type="error",
        title="Bridge needs abutments",
        message="Select at least {minNumber} teeth",
        min_teeth_count=2,
    ))
    engine = ValidationEngine(rules=[rule])

    result = engine.validate_and_get_first_error(make_data([8], product="Zirconia Bridge"))

    assert result.message == "Select at least 2 teeth"
    assert result.rule_id == "MIN2"


# ==================== Extraction rules ====================


def test_validate_extraction_rules_ignores_unselected_statuses():
    """Test statuses of unselected teeth never fail extraction rules."""
    engine = ValidationEngine()
    data = make_data([1, 2], {1: "Prepped", 2: "Prepped", 9: "Crooked"})

    assert engine.validate_extraction_rules(data) is None


def test_validate_extraction_rules_skips_generic_rules():
    engine = ValidationEngine()
    engine.add_rule(failing_rule("GENERIC", "error"))

    result = engine.validate_extraction_rules(make_data([1, 2], {1: "Crooked", 2: "Prepped"}))

    assert result.rule_id == EX1_ID
    assert result.affected_teeth == [1]


# ==================== Per-card validation ====================


@pytest.fixture
def store():
    return TeethSelectionStore()


def test_card_without_catalog_is_valid(store):
    engine = ValidationEngine()
    assert engine.validate_extraction_type("Prepped", "maxillary", store, "Crown", []) is None


def test_card_unknown_type_is_valid(store):
    engine = ValidationEngine()
    assert engine.validate_extraction_type("Crooked", "maxillary", store, "Crown", CATALOG) is None


def test_card_min_uses_own_teeth(store):
    """Test the card counts only its own teeth."""
    store.set_teeth("Missing teeth", "maxillary", [3])
    store.set_teeth("Prepped", "maxillary", [4, 5, 6])
    engine = ValidationEngine()

    result = engine.validate_extraction_type("Missing teeth", "maxillary", store, "Crown", CATALOG)

    assert result.title == "Insufficient Teeth Selected"
    assert result.affected_teeth == [3]
    assert result.rule_id == EX2_ID


def test_card_max(store):
    store.set_teeth("Implant", "maxillary", [1, 2, 3])
    engine = ValidationEngine()

    result = engine.validate_extraction_type("Implant", "maxillary", store, "Crown", CATALOG)

    assert result.title == "Too Many Teeth Selected"
    assert result.affected_teeth == [1, 2, 3]


def test_card_within_limits(store):
    store.set_teeth("Implant", "maxillary", [1, 2])
    engine = ValidationEngine()

    assert engine.validate_extraction_type("Implant", "maxillary", store, "Crown", CATALOG) is None


def test_card_keeps_only_results_naming_the_type(store):
    """Test other extraction failures surface only when they mention the card."""
    store.set_teeth("Prepped", "maxillary", [8])
    naming = ValidationRule(
        id="EX9_extraction_naming", product_name="*", type="warning", title="t", message="m",
        check_function=lambda data: ValidationResult(is_valid=False, message="Prepped looks odd"),
    )
    silent = ValidationRule(
        id="EX8_extraction_silent", product_name="*", type="warning", title="t", message="m",
        check_function=lambda data: ValidationResult(is_valid=False, message="Something else"),
    )

    engine = ValidationEngine(rules=[silent])
    assert engine.validate_extraction_type("Prepped", "maxillary", store, "Crown", CATALOG) is None

    engine.add_rule(naming)
    result = engine.validate_extraction_type("Prepped", "maxillary", store, "Crown", CATALOG)
    assert result.rule_id == "EX9_extraction_naming"


# ==================== Reductions ====================


def test_pick_first_by_severity_empty():
    assert pick_first_by_severity([]) is None


def test_summarize_results():
    results = [
        ValidationResult(is_valid=False, error_type="warning", affected_teeth=[3, 1]),
        ValidationResult(is_valid=False, error_type="info", affected_teeth=[1]),
        ValidationResult.passed(),
    ]

    summary = summarize_results(results)

    assert (summary.errors, summary.warnings, summary.infos) == (0, 1, 1)
    assert summary.affected_teeth == [1, 3]
    assert summary.can_proceed

    results.append(ValidationResult(is_valid=False, error_type="error"))
    assert not summarize_results(results).can_proceed
