"""
Tooth and arch primitives for Archcheck.

Universal numbering (1-32). Arch and tooth type are pure functions of the
tooth number - nothing here holds state.
"""

from typing import Dict, Iterable, List

MAXILLARY = "maxillary"
MANDIBULAR = "mandibular"
ARCH_TYPES = (MAXILLARY, MANDIBULAR)

MAXILLARY_TEETH = list(range(1, 17))
MANDIBULAR_TEETH = list(range(17, 33))
ALL_TEETH = MAXILLARY_TEETH + MANDIBULAR_TEETH

ANTERIOR = "anterior"
PREMOLAR = "premolar"
MOLAR = "molar"

# Tooth type per arch
TOOTH_TYPES: Dict[str, Dict[str, List[int]]] = {
    ANTERIOR: {
        MAXILLARY: [6, 7, 8, 9, 10, 11],
        MANDIBULAR: [22, 23, 24, 25, 26, 27],
    },
    PREMOLAR: {
        MAXILLARY: [4, 5, 12, 13],
        MANDIBULAR: [20, 21, 28, 29],
    },
    MOLAR: {
        MAXILLARY: [1, 2, 3, 14, 15, 16],
        MANDIBULAR: [17, 18, 19, 30, 31, 32],
    },
}


def get_arch(tooth_number: int) -> str:
    """
    Get arch for a tooth number.

    Args:
        tooth_number: Tooth number 1-32

    Returns:
        "maxillary" for 1-16, "mandibular" for 17-32

    Raises:
        ValueError: If tooth number is outside 1-32
    """
    if 1 <= tooth_number <= 16:
        return MAXILLARY
    if 17 <= tooth_number <= 32:
        return MANDIBULAR
    raise ValueError(f"Tooth number out of range: {tooth_number}")


def get_arch_teeth(arch: str) -> List[int]:
    """
    Get all tooth numbers in an arch.

    Returns a new list every call so callers can mutate it freely.
    """
    if arch == MAXILLARY:
        return list(MAXILLARY_TEETH)
    if arch == MANDIBULAR:
        return list(MANDIBULAR_TEETH)
    raise ValueError(f"Unknown arch: {arch}")


def get_tooth_type(tooth_number: int) -> str:
    """
    Classify a tooth as anterior, premolar or molar.

    Numbers not found in TOOTH_TYPES classify as molar.
    """
    for tooth_type, arches in TOOTH_TYPES.items():
        if tooth_number in arches[MAXILLARY] or tooth_number in arches[MANDIBULAR]:
            return tooth_type
    return MOLAR


def is_tooth_type(tooth_number: int, tooth_type: str) -> bool:
    """Check if a tooth has the given type."""
    return get_tooth_type(tooth_number) == tooth_type


def is_arch_continuous(teeth: Iterable[int]) -> bool:
    """
    Check if teeth form one contiguous numeric run.

    Examples:
        [3, 4, 5] -> True
        [3, 5]    -> False
        [] / [7]  -> True
    """
    sorted_teeth = sorted(teeth)
    if len(sorted_teeth) <= 1:
        return True

    for i in range(1, len(sorted_teeth)):
        if sorted_teeth[i] - sorted_teeth[i - 1] != 1:
            return False
    return True


def is_arch_adjacent(teeth: Iterable[int]) -> bool:
    """Check that every neighbouring pair in sorted order is one apart."""
    sorted_teeth = sorted(teeth)
    if len(sorted_teeth) <= 1:
        return True

    for i in range(1, len(sorted_teeth)):
        if abs(sorted_teeth[i] - sorted_teeth[i - 1]) != 1:
            return False
    return True
