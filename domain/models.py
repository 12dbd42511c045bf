"""
Domain models for Archcheck.

These dataclasses represent the core validation entities.
They are framework-agnostic and have no dependencies on storage or UI.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Iterable

logger = logging.getLogger(__name__)

# Severities (highest first)
ERROR = "error"
WARNING = "warning"
INFO = "info"
SEVERITIES = (ERROR, WARNING, INFO)

# Suggested action kinds
SUGGESTED_ACTIONS = (
    "switchProduct",
    "changeStatus",
    "selectTeeth",
    "addImplants",
    "uploadScan",
    "markAsPrepped",
    "markAsMissing",
    "markAsImplant",
    "addPontics",
)

YES = "Yes"
NO = "No"
ACTIVE = "Active"
INACTIVE = "Inactive"


def _optional_int(value) -> Optional[int]:
    """Convert API/spreadsheet value to int, keeping None/empty as None."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ExtractionType:
    """
    Extraction type offered by a product (e.g. "Prepped", "Missing teeth").

    Flags keep the "Yes"/"No" strings delivered by the product API.
    Read-only for the lifetime of a product selection.
    """

    name: str
    color: str = ""
    code: str = ""
    is_default: str = NO
    is_required: str = NO
    is_optional: str = NO
    status: str = ACTIVE
    min_teeth: Optional[int] = None
    max_teeth: Optional[int] = None
    id: Optional[Any] = None

    def __post_init__(self):
        """Validate extraction type."""
        if not self.name:
            raise ValueError("name cannot be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractionType":
        """
        Build from a raw extraction dict (API payload or cache row).

        Missing keys fall back to defaults.
        """
        return cls(
            name=str(data.get("name") or "").strip(),
            color=data.get("color") or "",
            code=data.get("code") or "",
            is_default=data.get("is_default") or NO,
            is_required=data.get("is_required") or NO,
            is_optional=data.get("is_optional") or NO,
            status=data.get("status") or ACTIVE,
            min_teeth=_optional_int(data.get("min_teeth")),
            max_teeth=_optional_int(data.get("max_teeth")),
            id=data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dict (for cache serialization)."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "code": self.code,
            "is_default": self.is_default,
            "is_required": self.is_required,
            "is_optional": self.is_optional,
            "status": self.status,
            "min_teeth": self.min_teeth,
            "max_teeth": self.max_teeth,
        }

    @property
    def default(self) -> bool:
        return self.is_default == YES

    @property
    def required(self) -> bool:
        return self.is_required == YES

    @property
    def optional(self) -> bool:
        return self.is_optional == YES

    @property
    def is_flagged(self) -> bool:
        """Check if any of default/required/optional is "Yes"."""
        return self.default or self.required or self.optional

    @property
    def is_eligible(self) -> bool:
        """Check if the type is shown to the user and known to validation."""
        return self.status == ACTIVE and self.is_flagged

    @property
    def has_count_constraints(self) -> bool:
        """Check if min_teeth or max_teeth is set."""
        return self.min_teeth is not None or self.max_teeth is not None


def to_extraction_types(extractions: Optional[Iterable[Any]]) -> List[ExtractionType]:
    """Convert raw dicts to ExtractionType, skipping nameless entries."""
    result = []
    for extraction in extractions or []:
        if isinstance(extraction, ExtractionType):
            result.append(extraction)
            continue
        if not isinstance(extraction, dict) or not str(extraction.get("name") or "").strip():
            logger.debug(f"Skipping extraction without name: {extraction!r}")
            continue
        result.append(ExtractionType.from_dict(extraction))
    return result


@dataclass
class SuggestedAction:
    """Remedial action offered together with a failing result."""

    label: str
    action: str
    target_product: Optional[str] = None
    target_status: Optional[str] = None
    target_teeth: Optional[List[int]] = None
    target_attribute: Optional[str] = None

    def __post_init__(self):
        """Validate action kind."""
        if self.action not in SUGGESTED_ACTIONS:
            raise ValueError(f"Unknown suggested action: {self.action}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, omitting unset targets."""
        result = {"label": self.label, "action": self.action}
        if self.target_product is not None:
            result["target_product"] = self.target_product
        if self.target_status is not None:
            result["target_status"] = self.target_status
        if self.target_teeth is not None:
            result["target_teeth"] = list(self.target_teeth)
        if self.target_attribute is not None:
            result["target_attribute"] = self.target_attribute
        return result


@dataclass(frozen=True)
class ValidationData:
    """
    Snapshot handed to every rule.

    Built by copying inputs, so rules never alias store internals.
    """

    selected_teeth: tuple
    tooth_statuses: Dict[int, str]
    product_name: str
    arch_type: str
    has_scans: bool = False
    implant_count: int = 0
    product_extractions: tuple = ()

    @classmethod
    def create(
        cls,
        selected_teeth,
        tooth_statuses: Dict[int, str],
        product_name: str,
        arch_type: str,
        has_scans: bool = False,
        implant_count: int = 0,
        product_extractions=None,
    ) -> "ValidationData":
        """
        Create snapshot from mutable inputs.

        Raw extraction dicts are converted to ExtractionType; entries
        without a name are dropped.
        """
        extractions = tuple(to_extraction_types(product_extractions))
        return cls(
            selected_teeth=tuple(selected_teeth),
            tooth_statuses={int(k): v for k, v in tooth_statuses.items()},
            product_name=product_name or "",
            arch_type=arch_type,
            has_scans=has_scans,
            implant_count=implant_count or 0,
            product_extractions=extractions,
        )


@dataclass
class ValidationResult:
    """
    Outcome of one rule evaluation.

    can_proceed=True lets the caller continue despite a non-passing
    warning/info result. Errors never set it.
    """

    is_valid: bool
    error_type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    solution: Optional[str] = None
    affected_teeth: Optional[List[int]] = None
    suggested_action: Optional[SuggestedAction] = None
    can_proceed: Optional[bool] = None
    rule_id: Optional[str] = None

    @classmethod
    def passed(cls) -> "ValidationResult":
        """Create a passing result."""
        return cls(is_valid=True)

    @property
    def is_error(self) -> bool:
        return self.error_type == ERROR

    @property
    def is_warning(self) -> bool:
        return self.error_type == WARNING

    @property
    def is_info(self) -> bool:
        return self.error_type == INFO

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for rendering layers."""
        return {
            "is_valid": self.is_valid,
            "error_type": self.error_type,
            "title": self.title,
            "message": self.message,
            "solution": self.solution,
            "affected_teeth": list(self.affected_teeth) if self.affected_teeth is not None else None,
            "suggested_action": self.suggested_action.to_dict() if self.suggested_action else None,
            "can_proceed": self.can_proceed,
            "rule_id": self.rule_id,
        }


@dataclass
class ChartConfiguration:
    """Chart flags aggregated over the rules applicable to a product."""

    lock_chart: bool = False
    hide_chart: bool = False
    auto_select_full_arch: bool = False
    scan_required: bool = False


@dataclass
class ValidationSummary:
    """Counts of failing results per severity."""

    errors: int = 0
    warnings: int = 0
    infos: int = 0
    affected_teeth: List[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.errors + self.warnings + self.infos

    @property
    def can_proceed(self) -> bool:
        """Proceeding is blocked only by errors."""
        return self.errors == 0
