"""
Input validators for Archcheck.

These validators ensure data integrity before it reaches the store or
the validation engine. All validators raise ValidationError on failure.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .exceptions import ValidationError
from .models import SEVERITIES, YES, NO, ACTIVE, INACTIVE
from .teeth import ARCH_TYPES, get_arch


def validate_tooth_number(tooth_number, arch: Optional[str] = None) -> int:
    """
    Validate tooth number.

    Rules:
    - Integer (or integer string) in 1-32
    - Belongs to arch, if arch is given

    Args:
        tooth_number: Tooth number to validate
        arch: Optional arch the tooth must belong to

    Returns:
        Tooth number as int

    Raises:
        ValidationError: If invalid
    """
    if isinstance(tooth_number, bool):
        raise ValidationError(f"Invalid tooth number: {tooth_number!r}")

    try:
        number = int(tooth_number)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid tooth number: {tooth_number!r}",
            details={"tooth_number": tooth_number},
        )

    if number < 1 or number > 32:
        raise ValidationError(
            f"Tooth number out of range: {number} (1-32)",
            details={"tooth_number": number},
        )

    if arch is not None and get_arch(number) != validate_arch(arch):
        raise ValidationError(
            f"Tooth {number} is not in the {arch} arch",
            details={"tooth_number": number, "arch": arch},
        )

    return number


def validate_teeth(teeth: Iterable, arch: Optional[str] = None) -> List[int]:
    """
    Validate a collection of tooth numbers.

    Returns:
        Sorted list of unique tooth numbers
    """
    if teeth is None:
        return []
    return sorted({validate_tooth_number(t, arch) for t in teeth})


def parse_teeth(value: str, arch: Optional[str] = None) -> List[int]:
    """
    Parse comma or space separated tooth numbers.

    Examples:
        "1,2,3" -> [1, 2, 3]
        "3 1 2" -> [1, 2, 3]
    """
    if not value or not value.strip():
        return []
    parts = [p for p in re.split(r"[,\s]+", value.strip()) if p]
    return validate_teeth(parts, arch)


def validate_arch(arch: str) -> str:
    """
    Validate arch name.

    Returns:
        Lowercased arch ("maxillary" or "mandibular")

    Raises:
        ValidationError: If unknown
    """
    if not arch:
        raise ValidationError("Arch cannot be empty")

    cleaned = str(arch).strip().lower()
    if cleaned not in ARCH_TYPES:
        raise ValidationError(
            f"Unknown arch: '{arch}'",
            details={"arch": arch, "allowed": list(ARCH_TYPES)},
        )
    return cleaned


def validate_extraction_type_name(name: str) -> str:
    """
    Validate extraction type name.

    Returns:
        Trimmed name

    Raises:
        ValidationError: If empty or longer than 100 characters
    """
    if not name or not str(name).strip():
        raise ValidationError("Extraction type name cannot be empty")

    cleaned = str(name).strip()
    if len(cleaned) > 100:
        raise ValidationError(
            f"Extraction type name too long: {len(cleaned)} characters (max 100)",
            details={"name": cleaned},
        )
    return cleaned


def normalize_flag(value) -> str:
    """
    Normalize a yes/no flag to "Yes" or "No".

    Accepts bools, 1/0, and yes/no/true/false/y/n strings (any case).
    None and empty become "No".

    Raises:
        ValidationError: If the value cannot be interpreted
    """
    if value is None or value == "":
        return NO
    if isinstance(value, bool):
        return YES if value else NO
    if isinstance(value, (int, float)):
        return YES if value else NO

    cleaned = str(value).strip().lower()
    if cleaned in ("yes", "y", "true", "1"):
        return YES
    if cleaned in ("no", "n", "false", "0"):
        return NO
    raise ValidationError(
        f"Invalid yes/no flag: '{value}'",
        details={"value": value},
    )


def normalize_status(value) -> str:
    """Normalize extraction status to "Active"/"Inactive" (empty = Active)."""
    if value is None or value == "":
        return ACTIVE
    cleaned = str(value).strip().lower()
    if cleaned in ("active", "1", "true", "yes"):
        return ACTIVE
    if cleaned in ("inactive", "0", "false", "no"):
        return INACTIVE
    raise ValidationError(
        f"Invalid extraction status: '{value}'",
        details={"value": value},
    )


def validate_count_bound(value, field_name: str = "min_teeth") -> Optional[int]:
    """
    Validate min/max teeth bound.

    None/empty is allowed (no constraint). Otherwise an int in 0-32.
    """
    if value is None or value == "":
        return None

    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid {field_name}: {value!r}",
            details={field_name: value},
        )

    if number < 0 or number > 32:
        raise ValidationError(
            f"{field_name} out of range: {number} (0-32)",
            details={field_name: number},
        )
    return number


def validate_severity(severity: str) -> str:
    """Validate rule severity (error/warning/info)."""
    if severity not in SEVERITIES:
        raise ValidationError(
            f"Invalid severity: '{severity}'",
            details={"severity": severity, "allowed": list(SEVERITIES)},
        )
    return severity


def validate_file_path(
    file_path: Union[Path, str],
    must_exist: bool = True,
    allowed_extensions: Optional[list] = None,
) -> Path:
    """
    Validate file path.

    Args:
        file_path: File path to validate
        must_exist: If True, file must exist on disk
        allowed_extensions: List of allowed extensions (e.g., ['.csv', '.xlsx'])

    Returns:
        Path object

    Raises:
        ValidationError: If invalid
    """
    if not file_path:
        raise ValidationError("File path cannot be empty")

    path = Path(file_path)

    if must_exist and not path.exists():
        raise ValidationError(
            f"File does not exist: {path}",
            details={"file_path": str(path)},
        )

    if allowed_extensions:
        if path.suffix.lower() not in [ext.lower() for ext in allowed_extensions]:
            raise ValidationError(
                f"Invalid file extension: {path.suffix}. Allowed: {allowed_extensions}",
                details={"file_path": str(path), "allowed": allowed_extensions},
            )

    return path
