"""
Validation Rule Catalog for Archcheck.

Rules are declared as data: a GenericRuleConfig describes the constraints,
and build_generic_check() turns it into a check function once, when the
catalog is loaded. Every rule - generic or hand-written like EX1/EX2 - is
a ValidationRule with a single check(data) method, so the catalog is one
homogeneous list.

Generic checks run in a fixed order and stop at the first failure:
 1. teeth count (exact overrides min/max)
 2. minimum abutments (Prepped / Teeth in mouth)
 3. minimum missing teeth
 4. minimum implants
 5. required statuses
 6. forbidden statuses
 7. allowed, then forbidden, tooth types
 8. continuity, then adjacency
 9. scan required
10. legacy implant count requirement
11. teeth-based pricing notice (info, always can proceed)
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union

from domain.exceptions import RuleConfigurationError, ValidationError
from domain.models import (
    ERROR,
    WARNING,
    INFO,
    ExtractionType,
    SuggestedAction,
    ValidationData,
    ValidationResult,
)
from domain.rules import (
    WILDCARD,
    fill_template,
    find_teeth_of_types,
    find_teeth_outside_types,
    find_teeth_with_status,
    find_teeth_without_status,
    get_abutment_count,
    get_implant_count,
    get_missing_count,
    pluralize_tooth,
    validate_teeth_count,
)
from domain.teeth import is_arch_adjacent, is_arch_continuous
from domain.validators import validate_severity

logger = logging.getLogger(__name__)

CheckFunction = Callable[[ValidationData], ValidationResult]

EX1_ID = "EX1_extraction_status_validation"
EX2_ID = "EX2_extraction_teeth_count_validation"


@dataclass
class ValidationRule:
    """
    One entry of the rule catalog.

    product_name is "*", a name, or a list of names (see
    domain.rules.is_product_match). The chart flags feed
    ValidationEngine.get_chart_configuration().
    """

    id: str
    product_name: Union[str, List[str]]
    type: str
    title: str
    message: str
    check_function: CheckFunction
    solution: Optional[str] = None
    suggested_action: Optional[SuggestedAction] = None
    lock_chart: bool = False
    hide_chart: bool = False
    auto_select_full_arch: bool = False
    scan_required: bool = False

    def __post_init__(self):
        """Validate rule."""
        if not self.id:
            raise RuleConfigurationError("Rule id cannot be empty")
        try:
            validate_severity(self.type)
        except ValidationError as e:
            raise RuleConfigurationError(e.message, details={"rule_id": self.id, **e.details})

    def check(self, data: ValidationData) -> ValidationResult:
        """Evaluate this rule against a snapshot."""
        return self.check_function(data)

    @property
    def is_extraction_rule(self) -> bool:
        """Extraction rules are recognised by their id."""
        return "extraction" in self.id


@dataclass
class GenericRuleConfig:
    """Declarative constraints for a generic rule."""

    id: str
    product_name: Union[str, List[str]]
    type: str
    title: str
    message: str
    solution: Optional[str] = None
    suggested_action: Optional[SuggestedAction] = None

    min_teeth_count: Optional[int] = None
    max_teeth_count: Optional[int] = None
    exact_teeth_count: Optional[int] = None
    min_abutment_count: Optional[int] = None
    min_missing_count: Optional[int] = None
    min_implant_count: Optional[int] = None
    required_statuses: List[str] = field(default_factory=list)
    forbidden_statuses: List[str] = field(default_factory=list)
    allowed_tooth_types: List[str] = field(default_factory=list)
    forbidden_tooth_types: List[str] = field(default_factory=list)
    requires_continuity: bool = False
    requires_adjacency: bool = False
    scan_required: bool = False
    implant_count_required: Optional[int] = None
    teeth_based_pricing: bool = False

    # Chart flags
    lock_chart: bool = False
    hide_chart: bool = False
    auto_select_full_arch: bool = False


def _failure(config: GenericRuleConfig, message: str, affected_teeth: Sequence[int]) -> ValidationResult:
    return ValidationResult(
        is_valid=False,
        error_type=config.type,
        title=config.title,
        message=message,
        solution=config.solution,
        affected_teeth=list(affected_teeth),
        suggested_action=config.suggested_action,
        can_proceed=config.type == WARNING,
    )


def build_generic_check(config: GenericRuleConfig) -> CheckFunction:
    """
    Compose a check function from declarative constraints.

    Args:
        config: Rule constraints

    Returns:
        check(data) -> ValidationResult, one result per evaluation
    """

    def check(data: ValidationData) -> ValidationResult:
        selected = list(data.selected_teeth)
        statuses = data.tooth_statuses

        # 1. Teeth count
        if not validate_teeth_count(
            selected, config.min_teeth_count, config.max_teeth_count, config.exact_teeth_count
        ):
            actual = len(selected)
            if config.exact_teeth_count is not None:
                message = fill_template(
                    config.message, userNumber=actual, requiredNumber=config.exact_teeth_count
                )
            elif config.min_teeth_count is not None and actual < config.min_teeth_count:
                message = fill_template(
                    config.message,
                    minNumber=config.min_teeth_count,
                    remainingNumber=max(0, config.min_teeth_count - actual),
                )
            else:
                message = fill_template(config.message, userNumber=actual, maxNumber=config.max_teeth_count)
            return _failure(config, message, selected)

        # 2. Abutments
        if config.min_abutment_count is not None:
            abutments = get_abutment_count(statuses, selected)
            if abutments < config.min_abutment_count:
                message = fill_template(
                    config.message,
                    abutmentCount=abutments,
                    minAbutmentCount=config.min_abutment_count,
                    remainingAbutments=config.min_abutment_count - abutments,
                )
                return _failure(config, message, selected)

        # 3. Missing teeth
        if config.min_missing_count is not None:
            missing = get_missing_count(statuses, selected)
            if missing < config.min_missing_count:
                message = fill_template(
                    config.message,
                    missingCount=missing,
                    minMissingCount=config.min_missing_count,
                    remainingMissing=config.min_missing_count - missing,
                )
                return _failure(config, message, selected)

        # 4. Implants
        if config.min_implant_count is not None:
            implants = get_implant_count(statuses, selected)
            if implants < config.min_implant_count:
                message = fill_template(
                    config.message,
                    implantCount=implants,
                    minImplantCount=config.min_implant_count,
                    remainingImplants=config.min_implant_count - implants,
                )
                return _failure(config, message, selected)

        # 5. Required statuses
        if config.required_statuses:
            invalid = find_teeth_without_status(statuses, selected, config.required_statuses)
            if invalid:
                message = fill_template(
                    config.message,
                    statusName=statuses.get(invalid[0]) or "undefined",
                    productName=data.product_name,
                    toothNumber=invalid[0],
                )
                return _failure(config, message, invalid)

        # 6. Forbidden statuses
        if config.forbidden_statuses:
            forbidden = find_teeth_with_status(statuses, selected, config.forbidden_statuses)
            if forbidden:
                message = fill_template(
                    config.message,
                    statusName=statuses.get(forbidden[0]),
                    productName=data.product_name,
                    toothNumber=forbidden[0],
                )
                return _failure(config, message, forbidden)

        # 7. Tooth types
        if config.allowed_tooth_types:
            invalid = find_teeth_outside_types(selected, config.allowed_tooth_types)
            if invalid:
                return _failure(config, fill_template(config.message, toothNumber=invalid[0]), invalid)

        if config.forbidden_tooth_types:
            invalid = find_teeth_of_types(selected, config.forbidden_tooth_types)
            if invalid:
                return _failure(config, fill_template(config.message, toothNumber=invalid[0]), invalid)

        # 8. Continuity / adjacency
        if config.requires_continuity and not is_arch_continuous(selected):
            ordered = sorted(selected)
            message = fill_template(config.message, startTooth=ordered[0], endTooth=ordered[-1])
            return _failure(config, message, selected)

        if config.requires_adjacency and not is_arch_adjacent(selected):
            return _failure(config, config.message, selected)

        # 9. Scan
        if config.scan_required and not data.has_scans:
            return _failure(config, fill_template(config.message, productName=data.product_name), selected)

        # 10. Legacy implant count (uses the caller-supplied count)
        if config.implant_count_required and data.implant_count < config.implant_count_required:
            message = fill_template(
                config.message,
                minNumber=config.implant_count_required,
                remainingNumber=config.implant_count_required - data.implant_count,
            )
            return _failure(config, message, selected)

        # 11. Pricing notice
        if config.teeth_based_pricing and config.type == INFO:
            return ValidationResult(
                is_valid=False,
                error_type=INFO,
                title=config.title,
                message=fill_template(config.message, userNumber=len(selected)),
                solution=config.solution,
                affected_teeth=selected,
                suggested_action=config.suggested_action,
                can_proceed=True,
            )

        return ValidationResult.passed()

    return check


def create_generic_rule(config: GenericRuleConfig) -> ValidationRule:
    """Build a catalog rule from declarative constraints."""
    return ValidationRule(
        id=config.id,
        product_name=config.product_name,
        type=config.type,
        title=config.title,
        message=config.message,
        solution=config.solution,
        suggested_action=config.suggested_action,
        check_function=build_generic_check(config),
        lock_chart=config.lock_chart,
        hide_chart=config.hide_chart,
        auto_select_full_arch=config.auto_select_full_arch,
        scan_required=config.scan_required,
    )


# ==================== Extraction rules ====================


def _eligible(data: ValidationData) -> List[ExtractionType]:
    return [e for e in data.product_extractions if e.is_eligible]


def _suggested_status(eligible: List[ExtractionType]) -> str:
    """Default type if any, else the first eligible type."""
    for extraction in eligible:
        if extraction.default:
            return extraction.name
    return eligible[0].name


def _find_invalid_statuses(data: ValidationData, allowed: List[str]):
    invalid_teeth = []
    invalid_statuses = []
    selected = set(data.selected_teeth)
    for tooth in sorted(data.tooth_statuses):
        status = data.tooth_statuses[tooth]
        if tooth in selected and status and status not in allowed:
            invalid_teeth.append(tooth)
            if status not in invalid_statuses:
                invalid_statuses.append(status)
    return invalid_teeth, invalid_statuses


def check_extraction_statuses(data: ValidationData) -> ValidationResult:
    """
    EX1: every selected tooth with a status must carry an eligible type name.

    Passes when the product has no eligible extraction types.
    """
    eligible = _eligible(data)
    if not eligible:
        return ValidationResult.passed()

    allowed = [e.name for e in eligible]
    invalid_teeth, invalid_statuses = _find_invalid_statuses(data, allowed)
    if not invalid_teeth:
        return ValidationResult.passed()

    plural = len(invalid_statuses) > 1
    quoted = '", "'.join(invalid_statuses)
    target = _suggested_status(eligible)
    return ValidationResult(
        is_valid=False,
        error_type=ERROR,
        title="Invalid Extraction Status",
        message=(
            f'The tooth status{"es" if plural else ""} "{quoted}" '
            f'{"are" if plural else "is"} not allowed for this product. '
            "Please select a valid status from the available options."
        ),
        solution=f"Available statuses for this product: {', '.join(allowed)}",
        affected_teeth=invalid_teeth,
        suggested_action=SuggestedAction(
            label=f"Mark as {target}",
            action="changeStatus",
            target_status=target,
            target_teeth=list(invalid_teeth),
        ),
    )


def min_teeth_failure(extraction: ExtractionType, count: int, teeth: Sequence[int]) -> ValidationResult:
    """Result for an extraction type below its min_teeth."""
    teeth_list = ", ".join(str(t) for t in teeth)
    return ValidationResult(
        is_valid=False,
        error_type=ERROR,
        title="Insufficient Teeth Selected",
        message=(
            f'"{extraction.name}" requires at least {extraction.min_teeth} '
            f"{pluralize_tooth(extraction.min_teeth)}, but only {count} selected "
            f"{'tooth has' if count == 1 else 'teeth have'} this status. "
            f"({len(teeth)} {pluralize_tooth(len(teeth))} selected in UI: {teeth_list})"
        ),
        solution=(
            f'Please assign "{extraction.name}" status to at least {extraction.min_teeth} '
            f"selected {pluralize_tooth(extraction.min_teeth)}."
        ),
        affected_teeth=list(teeth),
        suggested_action=SuggestedAction(
            label="Assign Status to More Teeth",
            action="changeStatus",
            target_status=extraction.name,
        ),
    )


def max_teeth_failure(extraction: ExtractionType, count: int, teeth: Sequence[int]) -> ValidationResult:
    """Result for an extraction type above its max_teeth."""
    return ValidationResult(
        is_valid=False,
        error_type=ERROR,
        title="Too Many Teeth Selected",
        message=(
            f'"{extraction.name}" allows at most {extraction.max_teeth} '
            f"{pluralize_tooth(extraction.max_teeth)}, but {count} selected "
            f"{'tooth has' if count == 1 else 'teeth have'} this status."
        ),
        solution=f'Please change the status of some selected teeth from "{extraction.name}" to a different status.',
        affected_teeth=list(teeth),
        suggested_action=SuggestedAction(
            label="Change Status of Some Teeth",
            action="changeStatus",
        ),
    )


def check_extraction_counts(data: ValidationData) -> ValidationResult:
    """
    EX2: min_teeth / max_teeth per eligible extraction type.

    The min check counts every tooth selected in the arch, the max check
    counts only the selected teeth carrying that type.
    """
    selected = list(data.selected_teeth)
    selected_set = set(selected)

    for extraction in _eligible(data):
        if not extraction.has_count_constraints:
            continue

        teeth_with_status = sorted(
            tooth for tooth, status in data.tooth_statuses.items()
            if status == extraction.name and tooth in selected_set
        )

        if extraction.min_teeth is not None and len(selected) < extraction.min_teeth:
            return min_teeth_failure(extraction, len(selected), selected)

        if extraction.max_teeth is not None and len(teeth_with_status) > extraction.max_teeth:
            return max_teeth_failure(extraction, len(teeth_with_status), teeth_with_status)

    return ValidationResult.passed()


def create_extraction_status_rule(
    id: str,
    product_name: Union[str, List[str]] = WILDCARD,
    type: str = ERROR,
    title: str = "Invalid Extraction Status",
    message: str = "The tooth status '{statusName}' is not allowed for this product.",
    solution: Optional[str] = None,
    suggested_action: Optional[SuggestedAction] = None,
) -> ValidationRule:
    """
    Build an EX1-style status rule with custom wording or severity.

    The message template receives {statusName} (offending statuses joined).
    """

    def check(data: ValidationData) -> ValidationResult:
        eligible = _eligible(data)
        if not eligible:
            return ValidationResult.passed()

        allowed = [e.name for e in eligible]
        invalid_teeth, invalid_statuses = _find_invalid_statuses(data, allowed)
        if not invalid_teeth:
            return ValidationResult.passed()

        target = _suggested_status(eligible)
        return ValidationResult(
            is_valid=False,
            error_type=type,
            title=title,
            message=fill_template(message, statusName='", "'.join(invalid_statuses)),
            solution=solution or f"Available statuses for this product: {', '.join(allowed)}",
            affected_teeth=invalid_teeth,
            suggested_action=suggested_action or SuggestedAction(
                label=f"Mark as {target}", action="changeStatus", target_status=target
            ),
            can_proceed=type == WARNING,
        )

    return ValidationRule(
        id=id,
        product_name=product_name,
        type=type,
        title=title,
        message=message,
        solution=solution,
        suggested_action=suggested_action,
        check_function=check,
    )


EX1_RULE = ValidationRule(
    id=EX1_ID,
    product_name=WILDCARD,
    type=ERROR,
    title="Invalid Extraction Status",
    message=(
        "The tooth status '{statusName}' is not allowed for this product. "
        "Please select a valid status from the available options."
    ),
    check_function=check_extraction_statuses,
)

EX2_RULE = ValidationRule(
    id=EX2_ID,
    product_name=WILDCARD,
    type=ERROR,
    title="Invalid Extraction Count",
    message="The number of teeth selected for '{statusName}' does not meet the requirements for this product.",
    check_function=check_extraction_counts,
)

VALIDATION_RULES: List[ValidationRule] = [EX1_RULE, EX2_RULE]


def get_default_rules() -> List[ValidationRule]:
    """Fresh copy of the built-in catalog (engines may add/remove rules)."""
    return list(VALIDATION_RULES)
