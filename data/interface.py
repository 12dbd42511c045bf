"""
Session Cache Interface - Abstract Base Class for cache operations.

This module defines the contract for all session cache implementations in
Archcheck. The cache stands in for the browser-local storage of the case
console: product extraction catalogs and the per-session tooth selection.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any


class SessionCacheInterface(ABC):
    """
    Abstract base class for session cache operations.

    This interface defines all methods required for managing:
    - Product extraction catalogs (keyed by product id)
    - Default extraction type names per product
    - Persisted selection state per session

    Implementations raise CacheError on storage failure.
    """

    # ==================== Product Extractions ====================

    @abstractmethod
    def save_product_extractions(
        self,
        product_id: str,
        extractions: List[Dict[str, Any]],
        product_name: Optional[str] = None,
    ) -> bool:
        """
        Save or replace a product's raw extraction list.

        Args:
            product_id: Product id (exact, including any timestamp suffix)
            extractions: Raw extraction dicts as delivered by the product API
            product_name: Optional display name

        Returns:
            True if saved
        """
        pass

    @abstractmethod
    def get_product_extractions(self, product_id: str) -> Optional[List[Dict[str, Any]]]:
        """
        Get a product's raw extraction list.

        Returns:
            List of dicts, or None if the product is not cached
        """
        pass

    @abstractmethod
    def list_product_extractions(self) -> List[Dict[str, Any]]:
        """
        List all cached products.

        Returns:
            List of dicts with product_id, product_name, extractions, updated_at
        """
        pass

    @abstractmethod
    def delete_product_extractions(self, product_id: str) -> bool:
        """
        Delete a cached product.

        Returns:
            True if a row was deleted
        """
        pass

    @abstractmethod
    def save_default_extraction_types(self, product_id: str, default_types: List[str]) -> bool:
        """Save default extraction type names for a product."""
        pass

    @abstractmethod
    def get_default_extraction_types(self, product_id: str) -> List[str]:
        """Get default extraction type names for a product ([] if unknown)."""
        pass

    # ==================== Selection State ====================

    @abstractmethod
    def save_selection_state(self, session_id: str, state: Dict[str, Any]) -> bool:
        """
        Save a selection store snapshot.

        Args:
            session_id: Session key
            state: JSON-serializable snapshot (see TeethSelectionStore.to_state)

        Returns:
            True if saved
        """
        pass

    @abstractmethod
    def load_selection_state(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Load a selection store snapshot, or None if absent."""
        pass

    @abstractmethod
    def clear_selection_state(self, session_id: str) -> bool:
        """Delete a session's snapshot."""
        pass

    # ==================== Lifecycle ====================

    @abstractmethod
    def close(self):
        """Release the underlying connection."""
        pass
