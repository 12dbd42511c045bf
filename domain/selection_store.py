"""
Per-arch teeth assignment store for Archcheck.

Holds which teeth are assigned to which extraction type in each arch,
plus the single active extraction type for the session. One store is
owned by one session (see config.app_context.AppContext) and is never
shared between sessions.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from .teeth import ARCH_TYPES

logger = logging.getLogger(__name__)

# callback(arch, extraction_type, teeth)
SelectionListener = Callable[[str, str, List[int]], None]


class TeethSelectionStore:
    """
    Mutable assignment state: (extraction type, arch) -> set of teeth.

    Writes never reject overlap between extraction types; cleanup_overlaps()
    resolves it afterwards, keeping each tooth under the type that was
    written most recently.

    All read accessors return copies.
    """

    def __init__(self):
        self._selection: Dict[str, Dict[str, Set[int]]] = {}
        self._write_order: Dict[Tuple[str, str], int] = {}
        self._write_counter = 0
        self._active_extraction_type: Optional[str] = None

        # Product reference data (per product id)
        self._product_extractions: Dict[str, Dict[str, Any]] = {}
        self._default_extraction_types: Dict[str, List[str]] = {}
        self._seeded: Set[Tuple[str, str, str]] = set()

        self._listeners: List[SelectionListener] = []

    # ==================== Notifications ====================

    def subscribe(self, listener: SelectionListener):
        """Register a change listener (called with arch, extraction type, teeth)."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SelectionListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, arch: str, extraction_type: str):
        teeth = self.get_teeth(extraction_type, arch)
        for listener in list(self._listeners):
            try:
                listener(arch, extraction_type, teeth)
            except Exception:
                logger.exception(f"Selection listener failed for {extraction_type}/{arch}")

    # ==================== Internal helpers ====================

    def _check_arch(self, arch: str):
        if arch not in ARCH_TYPES:
            raise ValueError(f"Unknown arch: {arch}")

    def _stamp(self, extraction_type: str, arch: str):
        self._write_counter += 1
        self._write_order[(extraction_type, arch)] = self._write_counter

    def _write(self, extraction_type: str, arch: str, teeth: Set[int]) -> bool:
        """Replace teeth for key, return True if it changed."""
        arches = self._selection.setdefault(extraction_type, {})
        previous = arches.get(arch, set())
        arches[arch] = set(teeth)
        self._stamp(extraction_type, arch)
        return previous != arches[arch]

    def write_order(self, extraction_type: str, arch: str) -> int:
        """Sequence number of the last write for key (0 = never written)."""
        return self._write_order.get((extraction_type, arch), 0)

    # ==================== Reads ====================

    def get_teeth(self, extraction_type: str, arch: str) -> List[int]:
        """Sorted teeth for (extraction_type, arch). Unknown key -> []."""
        return sorted(self._selection.get(extraction_type, {}).get(arch, set()))

    def has_teeth(self, extraction_type: str, arch: str) -> bool:
        return bool(self._selection.get(extraction_type, {}).get(arch))

    def is_tooth_assigned(self, extraction_type: str, arch: str, tooth: int) -> bool:
        return tooth in self._selection.get(extraction_type, {}).get(arch, set())

    def get_extraction_types(self, arch: Optional[str] = None) -> List[str]:
        """
        Extraction types with a recorded assignment, oldest write first.

        Args:
            arch: Limit to types written for this arch
        """
        keys = [
            (order, extraction_type)
            for (extraction_type, key_arch), order in self._write_order.items()
            if arch is None or key_arch == arch
        ]
        seen = []
        for _, extraction_type in sorted(keys):
            if extraction_type in seen:
                seen.remove(extraction_type)
            seen.append(extraction_type)
        return seen

    def get_assignments(self, arch: str) -> Dict[str, List[int]]:
        """Copy of {extraction type: sorted teeth} for arch, non-empty only."""
        return {
            extraction_type: self.get_teeth(extraction_type, arch)
            for extraction_type in self.get_extraction_types(arch)
            if self.has_teeth(extraction_type, arch)
        }

    def get_all_teeth(self, arch: str) -> List[int]:
        """Union of all assigned teeth in arch, sorted."""
        teeth: Set[int] = set()
        for arches in self._selection.values():
            teeth |= arches.get(arch, set())
        return sorted(teeth)

    # ==================== Writes ====================

    def set_teeth(
        self,
        extraction_type: str,
        arch: str,
        teeth: Iterable[int],
        preserve_others: bool = True,
    ):
        """
        Replace the assignment for (extraction_type, arch).

        Args:
            extraction_type: Extraction type name
            arch: "maxillary" or "mandibular"
            teeth: New teeth for the key
            preserve_others: If False, remove these teeth from every other
                extraction type in the same arch
        """
        self._check_arch(arch)
        new_teeth = set(int(t) for t in teeth)

        if not preserve_others:
            for other_type, arches in self._selection.items():
                if other_type == extraction_type:
                    continue
                overlap = arches.get(arch, set()) & new_teeth
                if overlap:
                    arches[arch] = arches[arch] - new_teeth
                    self._notify(arch, other_type)

        if self._write(extraction_type, arch, new_teeth):
            self._notify(arch, extraction_type)

        logger.debug(f"Set {extraction_type}/{arch}: {sorted(new_teeth)} (preserve_others={preserve_others})")

    def toggle_tooth(self, arch: str, tooth: int) -> bool:
        """
        Flip membership of tooth for the active extraction type.

        Adding a tooth removes it from the other types in that arch.

        Returns:
            False if no extraction type is active (nothing changed), else True
        """
        self._check_arch(arch)
        extraction_type = self._active_extraction_type
        if extraction_type is None:
            logger.debug(f"Ignoring click on tooth {tooth}: no active extraction type")
            return False

        current = set(self._selection.get(extraction_type, {}).get(arch, set()))
        if tooth in current:
            current.discard(tooth)
        else:
            for other_type, arches in self._selection.items():
                if other_type != extraction_type and tooth in arches.get(arch, set()):
                    arches[arch] = arches[arch] - {tooth}
                    self._notify(arch, other_type)
            current.add(tooth)

        self._write(extraction_type, arch, current)
        self._notify(arch, extraction_type)
        return True

    def clear_extraction_type(self, extraction_type: str, arch: str):
        """Empty (extraction_type, arch)."""
        if self.has_teeth(extraction_type, arch):
            self._selection[extraction_type][arch] = set()
            self._notify(arch, extraction_type)

    def clear_arch(self, arch: str):
        """Empty every extraction type in arch and forget its seeding."""
        self._check_arch(arch)
        for extraction_type in list(self._selection):
            self.clear_extraction_type(extraction_type, arch)
        self._seeded = {key for key in self._seeded if key[2] != arch}

    def reset(self):
        """Drop all assignments, active type and seeding (product data is kept)."""
        for arch in ARCH_TYPES:
            self.clear_arch(arch)
        self._selection.clear()
        self._write_order.clear()
        self._active_extraction_type = None

    def cleanup_overlaps(self) -> int:
        """
        Drop teeth duplicated across extraction types, per arch.

        Each duplicated tooth stays only under the most recently written
        type. Idempotent.

        Returns:
            Number of (type, tooth) entries removed
        """
        removed = 0
        for arch in ARCH_TYPES:
            owner: Dict[int, str] = {}
            for extraction_type in self.get_extraction_types(arch):
                for tooth in self._selection.get(extraction_type, {}).get(arch, set()):
                    owner[tooth] = extraction_type  # later write overrides

            for extraction_type, arches in self._selection.items():
                teeth = arches.get(arch)
                if not teeth:
                    continue
                keep = {tooth for tooth in teeth if owner.get(tooth) == extraction_type}
                if keep != teeth:
                    removed += len(teeth - keep)
                    arches[arch] = keep
                    self._notify(arch, extraction_type)

        if removed:
            logger.info(f"Cleaned up {removed} overlapping tooth assignment(s)")
        return removed

    # ==================== Active extraction type ====================

    def set_active_extraction_type(self, extraction_type: Optional[str]):
        """Set the single active extraction type (None = no focus)."""
        self._active_extraction_type = extraction_type

    def clear_active_extraction_type(self):
        self._active_extraction_type = None

    def get_active_extraction_type(self) -> Optional[str]:
        return self._active_extraction_type

    def is_active_extraction_type(self, extraction_type: str) -> bool:
        return self._active_extraction_type == extraction_type

    # ==================== Product reference data ====================

    def set_product_extractions(self, product_id: str, extractions: List[Dict[str, Any]], **extra):
        """Remember the raw extraction list for a product id."""
        self._product_extractions[str(product_id)] = {"extractions": list(extractions), **extra}

    def get_product_extractions(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self._product_extractions.get(str(product_id))

    def clear_product_extractions(self, product_id: str):
        self._product_extractions.pop(str(product_id), None)

    def list_product_ids(self) -> List[str]:
        """Product ids with stored extraction data, insertion order."""
        return list(self._product_extractions)

    def set_default_extraction_types(self, product_id: str, default_types: List[str]):
        self._default_extraction_types[str(product_id)] = list(default_types)

    def get_default_extraction_types(self, product_id: str) -> List[str]:
        return list(self._default_extraction_types.get(str(product_id), []))

    def clear_default_extraction_types(self, product_id: str):
        self._default_extraction_types.pop(str(product_id), None)

    # ==================== Seeding bookkeeping ====================

    def mark_seeded(self, product_id: str, extraction_type: str, arch: str):
        self._seeded.add((str(product_id), extraction_type, arch))

    def was_seeded(self, product_id: str, extraction_type: str, arch: str) -> bool:
        return (str(product_id), extraction_type, arch) in self._seeded

    # ==================== Snapshot ====================

    def to_state(self) -> Dict[str, Any]:
        """
        JSON-serializable snapshot for the session cache.

        Assignments are listed in write order so restoring keeps
        last-writer-wins semantics.
        """
        ordered = sorted(self._write_order.items(), key=lambda item: item[1])
        return {
            "assignments": [
                {"extraction_type": extraction_type, "arch": arch, "teeth": self.get_teeth(extraction_type, arch)}
                for (extraction_type, arch), _ in ordered
            ],
            "active_extraction_type": self._active_extraction_type,
            "product_extractions": dict(self._product_extractions),
            "default_extraction_types": dict(self._default_extraction_types),
            "seeded": [list(key) for key in sorted(self._seeded)],
        }

    def restore_state(self, state: Dict[str, Any]):
        """
        Merge a persisted snapshot into the store.

        Each part is restored only if the corresponding part of the store is
        currently empty, so fresh in-memory state always wins.
        """
        if not state:
            return

        if not self._write_order:
            for item in state.get("assignments", []):
                arch = item.get("arch")
                if arch not in ARCH_TYPES:
                    logger.warning(f"Skipping persisted assignment with unknown arch: {item}")
                    continue
                self._write(item["extraction_type"], arch, set(item.get("teeth", [])))

        if self._active_extraction_type is None:
            self._active_extraction_type = state.get("active_extraction_type")

        if not self._product_extractions:
            self._product_extractions = dict(state.get("product_extractions") or {})

        if not self._default_extraction_types:
            self._default_extraction_types = {
                k: list(v) for k, v in (state.get("default_extraction_types") or {}).items()
            }

        if not self._seeded:
            self._seeded = {tuple(key) for key in state.get("seeded", []) if len(key) == 3}

        logger.debug("Restored selection state from cache")
