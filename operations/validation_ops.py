"""
Validation Engine for Archcheck.

Matches catalog rules to a product, runs them against a ValidationData
snapshot and reduces the outcomes. A rule that raises is logged and
treated as passing.

Severity priority for reductions: error > warning > info.
"""

import logging
from dataclasses import replace
from typing import Any, Iterable, List, Optional

from domain.exceptions import NotFoundError, RuleConfigurationError
from domain.models import (
    ERROR,
    WARNING,
    INFO,
    ChartConfiguration,
    ValidationData,
    ValidationResult,
    ValidationSummary,
)
from domain.rules import is_product_match
from domain.selection_store import TeethSelectionStore
from operations.catalog_ops import find_extraction_type
from operations.rule_builder import (
    EX2_ID,
    ValidationRule,
    get_default_rules,
    max_teeth_failure,
    min_teeth_failure,
)

logger = logging.getLogger(__name__)

SEVERITY_ORDER = (ERROR, WARNING, INFO)


class ValidationEngine:
    """
    Runs an ordered rule catalog against validation snapshots.

    Catalog order is preserved for execution and for tie-breaking inside a
    severity tier; it never decides priority between tiers.

    Example:
        >>> engine = ValidationEngine()
        >>> data = ValidationData.create([8], {8: "Crooked"}, "Crown", "maxillary",
        ...                              product_extractions=[{"name": "Prepped", "is_default": "Yes"}])
        >>> engine.validate_and_get_first_error(data).title
        'Invalid Extraction Status'
    """

    def __init__(self, rules: Optional[Iterable[ValidationRule]] = None):
        self._rules: List[ValidationRule] = list(rules) if rules is not None else get_default_rules()

    # ==================== Rule administration ====================

    def add_rule(self, rule: ValidationRule):
        """
        Append a rule to the catalog.

        Raises:
            RuleConfigurationError: If a rule with the same id exists
        """
        if any(existing.id == rule.id for existing in self._rules):
            raise RuleConfigurationError(
                f"Duplicate rule id: {rule.id}",
                details={"rule_id": rule.id},
            )
        self._rules.append(rule)
        logger.info(f"Added validation rule: {rule.id}")

    def remove_rule(self, rule_id: str):
        """
        Remove a rule by id.

        Raises:
            NotFoundError: If no rule has that id
        """
        for index, rule in enumerate(self._rules):
            if rule.id == rule_id:
                del self._rules[index]
                logger.info(f"Removed validation rule: {rule_id}")
                return
        raise NotFoundError(f"Validation rule not found: {rule_id}")

    def get_rules(self) -> List[ValidationRule]:
        """Copy of the catalog, in order."""
        return list(self._rules)

    def is_rule_applicable(self, rule: ValidationRule, product_name: str) -> bool:
        return is_product_match(rule.product_name, product_name)

    def get_rules_for_product(self, product_name: str) -> List[ValidationRule]:
        """Applicable rules, in catalog order."""
        return [rule for rule in self._rules if self.is_rule_applicable(rule, product_name)]

    def get_chart_configuration(self, product_name: str) -> ChartConfiguration:
        """OR-aggregate chart flags over the applicable rules."""
        config = ChartConfiguration()
        for rule in self.get_rules_for_product(product_name):
            config.lock_chart = config.lock_chart or rule.lock_chart
            config.hide_chart = config.hide_chart or rule.hide_chart
            config.auto_select_full_arch = config.auto_select_full_arch or rule.auto_select_full_arch
            config.scan_required = config.scan_required or rule.scan_required
        return config

    # ==================== Execution ====================

    def _run_rule(self, rule: ValidationRule, data: ValidationData) -> Optional[ValidationResult]:
        """Run one rule; None on pass or on rule failure (logged)."""
        try:
            result = rule.check(data)
        except Exception:
            logger.exception(f"Validation rule {rule.id} raised, treating as passed")
            return None

        if result is None or result.is_valid:
            return None

        return replace(
            result,
            error_type=result.error_type or rule.type,
            title=result.title or rule.title,
            message=result.message or rule.message,
            rule_id=rule.id,
        )

    def _run_rules(self, rules: Iterable[ValidationRule], data: ValidationData) -> List[ValidationResult]:
        results = []
        for rule in rules:
            result = self._run_rule(rule, data)
            if result is not None:
                results.append(result)
        return results

    def validate_configuration(self, data: ValidationData) -> List[ValidationResult]:
        """
        Run every applicable rule and collect the failing results.

        Args:
            data: Validation snapshot

        Returns:
            Non-passing results, in catalog order (empty = valid)
        """
        results = self._run_rules(self.get_rules_for_product(data.product_name), data)
        logger.debug(
            f"Validated {data.product_name!r}/{data.arch_type}: {len(results)} issue(s)"
        )
        return results

    def validate_and_get_first_error(self, data: ValidationData) -> Optional[ValidationResult]:
        """
        Highest-severity result, first in catalog order within its tier.

        Returns:
            ValidationResult, or None if everything passes
        """
        return pick_first_by_severity(self.validate_configuration(data))

    def validate_extraction_rules(self, data: ValidationData) -> Optional[ValidationResult]:
        """
        Run only the extraction rules, on statuses of selected teeth.

        Returns:
            First failing result, or None if all pass
        """
        selected = set(data.selected_teeth)
        scoped = replace(
            data,
            tooth_statuses={tooth: status for tooth, status in data.tooth_statuses.items() if tooth in selected},
        )
        rules = [rule for rule in self.get_rules_for_product(data.product_name) if rule.is_extraction_rule]
        results = self._run_rules(rules, scoped)
        return results[0] if results else None

    def validate_extraction_type(
        self,
        extraction_type_name: str,
        arch: str,
        store: TeethSelectionStore,
        product_name: str,
        extractions: Optional[List[Any]],
    ) -> Optional[ValidationResult]:
        """
        Validate a single extraction type card.

        Count limits are checked against the teeth assigned to this type
        only (for both min and max). Other extraction rules run on a
        snapshot holding just this type's teeth, and their failure is kept
        only if its message or solution names this type.

        Args:
            extraction_type_name: Card's extraction type
            arch: Arch of the card
            store: Selection store
            product_name: Current product name
            extractions: Product extraction catalog (raw dicts or ExtractionType)

        Returns:
            Failing result for this card, or None
        """
        if not extractions:
            return None

        extraction = find_extraction_type(extractions, extraction_type_name)
        if extraction is None:
            return None

        teeth = store.get_teeth(extraction_type_name, arch)
        data = ValidationData.create(
            selected_teeth=teeth,
            tooth_statuses={tooth: extraction_type_name for tooth in teeth},
            product_name=product_name,
            arch_type=arch,
            product_extractions=extractions,
        )

        for rule in self._rules:
            if not rule.is_extraction_rule:
                continue

            if rule.id == EX2_ID:
                if not extraction.has_count_constraints:
                    continue
                if extraction.min_teeth is not None and len(teeth) < extraction.min_teeth:
                    return replace(min_teeth_failure(extraction, len(teeth), teeth), rule_id=rule.id)
                if extraction.max_teeth is not None and len(teeth) > extraction.max_teeth:
                    return replace(max_teeth_failure(extraction, len(teeth), teeth), rule_id=rule.id)
                continue

            result = self._run_rule(rule, data)
            if result is None:
                continue
            if extraction_type_name in (result.message or "") or extraction_type_name in (result.solution or ""):
                return result

        return None


def pick_first_by_severity(results: List[ValidationResult]) -> Optional[ValidationResult]:
    """First result of the highest severity present, or None."""
    for severity in SEVERITY_ORDER:
        for result in results:
            if result.error_type == severity:
                return result
    return None


def summarize_results(results: Iterable[ValidationResult]) -> ValidationSummary:
    """
    Count failing results per severity.

    Example:
        >>> summarize_results([]).can_proceed
        True
    """
    summary = ValidationSummary()
    affected = set()
    for result in results:
        if result.is_valid:
            continue
        if result.error_type == ERROR:
            summary.errors += 1
        elif result.error_type == WARNING:
            summary.warnings += 1
        elif result.error_type == INFO:
            summary.infos += 1
        affected.update(result.affected_teeth or [])
    summary.affected_teeth = sorted(affected)
    return summary
