"""
Business rules for Archcheck.

Helpers shared by the rule catalog and the validation engine:
product-name matching, status counting and tooth-type checks.
They are pure functions with no side effects.
"""

from typing import Dict, Iterable, List, Mapping, Sequence, Union

from .teeth import get_tooth_type

# Statuses with a fixed meaning for the generic rule checks
STATUS_PREPPED = "Prepped"
STATUS_TEETH_IN_MOUTH = "Teeth in mouth"
STATUS_MISSING = "Missing teeth"
STATUS_IMPLANT = "Implant"
STATUS_WILL_EXTRACT = "Will extract on delivery"
STATUS_HAS_BEEN_EXTRACTED = "Has been extracted"

ABUTMENT_STATUSES = (STATUS_PREPPED, STATUS_TEETH_IN_MOUTH)

WILDCARD = "*"

# Coarse product categories and the substrings that identify them
PRODUCT_CATEGORIES: Dict[str, List[str]] = {
    "crown": ["crown", "cap", "onlay", "inlay"],
    "bridge": ["bridge", "fixed partial denture", "fpd"],
    "implant": ["implant", "implant-supported"],
    "denture": ["denture", "complete denture", "full denture", "partial denture"],
    "veneer": ["veneer", "laminate"],
    "retainer": ["retainer", "hawley", "essix"],
    "flipper": ["flipper", "temporary partial"],
    "night guard": ["night guard", "occlusal guard", "bite guard"],
    "splint": ["splint", "repositioning"],
}


def _as_list(rule_names: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(rule_names, str):
        return [rule_names]
    return list(rule_names or [])


def matches_product_name(rule_names: Union[str, Sequence[str]], product_name: str) -> bool:
    """
    Check if any rule product name is a case-insensitive substring of product_name.

    Args:
        rule_names: Single name or list of names from the rule
        product_name: Current product name

    Returns:
        True on first match
    """
    product_lower = (product_name or "").lower()
    return any(name.lower() in product_lower for name in _as_list(rule_names))


def matches_product_category(rule_names: Union[str, Sequence[str]], product_name: str) -> bool:
    """
    Category fallback match.

    A rule name that mentions a category matches any product whose name
    contains one of that category's synonyms.

    Example:
        rule "Crown rules" + product "Zirconia Onlay" -> True (crown: onlay)
    """
    product_lower = (product_name or "").lower()

    for rule_name in _as_list(rule_names):
        rule_lower = rule_name.lower()
        for category, variations in PRODUCT_CATEGORIES.items():
            if category in rule_lower:
                if any(variation in product_lower for variation in variations):
                    return True

    return False


def is_product_match(rule_names: Union[str, Sequence[str]], product_name: str) -> bool:
    """
    Full applicability check: wildcard, then exact substring, then category.
    """
    if rule_names == WILDCARD:
        return True
    if isinstance(rule_names, (list, tuple)) and WILDCARD in rule_names:
        return True
    if matches_product_name(rule_names, product_name):
        return True
    return matches_product_category(rule_names, product_name)


def get_teeth_with_status(tooth_statuses: Mapping[int, str], status: str) -> List[int]:
    """Get sorted tooth numbers carrying status."""
    return sorted(int(tooth) for tooth, value in tooth_statuses.items() if value == status)


def count_selected_with_status(
    tooth_statuses: Mapping[int, str],
    selected_teeth: Iterable[int],
    statuses: Union[str, Sequence[str]],
) -> int:
    """Count selected teeth whose status is in statuses."""
    wanted = _as_list(statuses)
    return sum(1 for tooth in selected_teeth if tooth_statuses.get(tooth) in wanted)


def get_abutment_count(tooth_statuses: Mapping[int, str], selected_teeth: Iterable[int]) -> int:
    """Abutments are selected teeth that are Prepped or Teeth in mouth."""
    return count_selected_with_status(tooth_statuses, selected_teeth, ABUTMENT_STATUSES)


def get_missing_count(tooth_statuses: Mapping[int, str], selected_teeth: Iterable[int]) -> int:
    return count_selected_with_status(tooth_statuses, selected_teeth, STATUS_MISSING)


def get_implant_count(tooth_statuses: Mapping[int, str], selected_teeth: Iterable[int]) -> int:
    return count_selected_with_status(tooth_statuses, selected_teeth, STATUS_IMPLANT)


def validate_teeth_count(
    selected_teeth: Sequence[int],
    min_count: int = None,
    max_count: int = None,
    exact_count: int = None,
) -> bool:
    """
    Check teeth count bounds.

    exact_count overrides min_count/max_count.
    """
    count = len(selected_teeth)
    if exact_count is not None:
        return count == exact_count
    if min_count is not None and count < min_count:
        return False
    if max_count is not None and count > max_count:
        return False
    return True


def find_teeth_without_status(
    tooth_statuses: Mapping[int, str],
    selected_teeth: Iterable[int],
    allowed_statuses: Sequence[str],
) -> List[int]:
    """Selected teeth whose status is not in allowed_statuses (unset counts as not allowed)."""
    return [tooth for tooth in selected_teeth if tooth_statuses.get(tooth, "") not in allowed_statuses]


def find_teeth_with_status(
    tooth_statuses: Mapping[int, str],
    selected_teeth: Iterable[int],
    forbidden_statuses: Sequence[str],
) -> List[int]:
    """Selected teeth whose status is in forbidden_statuses."""
    return [tooth for tooth in selected_teeth if tooth_statuses.get(tooth) in forbidden_statuses]


def find_teeth_outside_types(selected_teeth: Iterable[int], allowed_types: Sequence[str]) -> List[int]:
    """Selected teeth whose tooth type is not allowed."""
    return [tooth for tooth in selected_teeth if get_tooth_type(tooth) not in allowed_types]


def find_teeth_of_types(selected_teeth: Iterable[int], forbidden_types: Sequence[str]) -> List[int]:
    """Selected teeth whose tooth type is forbidden."""
    return [tooth for tooth in selected_teeth if get_tooth_type(tooth) in forbidden_types]


def fill_template(template: str, **values) -> str:
    """
    Substitute {placeholder} values into a message template.

    Unknown placeholders are left as-is, so one template can serve
    several constraint branches.

    Example:
        fill_template("{minNumber} needed", minNumber=3) -> "3 needed"
    """
    if not template:
        return template
    result = template
    for key, value in values.items():
        result = result.replace("{" + key + "}", str(value))
    return result


def pluralize_tooth(count: int) -> str:
    """'tooth' for 1, 'teeth' otherwise."""
    return "tooth" if count == 1 else "teeth"
