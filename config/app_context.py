"""
Application Context for Archcheck.

Centralized session state and dependency injection.
"""

from dataclasses import dataclass, field
from typing import Optional

from data.interface import SessionCacheInterface
from domain.click_guard import ClickGuard
from domain.selection_store import TeethSelectionStore
from operations.validation_ops import ValidationEngine
from .settings import Settings, get_settings


@dataclass
class AppContext:
    """
    Centralized session context.

    Owns the session's selection store, validation engine and click guard.
    A store belongs to exactly one context and is never shared between
    sessions; create one context per session.

    Key principles:
    - Immutable where possible (use with_* methods for changes)
    - All dependencies explicit (store, engine, cache, settings)
    - No global state - everything through context

    Example:
        >>> from config.app_context import create_app_context
        >>> from data import create_cache
        >>>
        >>> ctx = create_app_context(cache=create_cache("sqlite", ":memory:"))
        >>> ctx = ctx.with_product(product_id="12", product_name="Full Arch Hybrid")
        >>>
        >>> # Pass to operations
        >>> from operations import build_validation_data
        >>> data = build_validation_data(ctx.store, ctx.current_product_name, "maxillary", extractions)
        >>> ctx.engine.validate_configuration(data)
    """

    # Core dependencies
    store: TeethSelectionStore = field(default_factory=TeethSelectionStore)
    engine: ValidationEngine = field(default_factory=ValidationEngine)
    settings: Settings = field(default_factory=get_settings)
    cache: Optional[SessionCacheInterface] = None
    guard: Optional[ClickGuard] = None

    # Session state (optional)
    current_product_id: Optional[str] = None
    current_product_name: Optional[str] = None

    def __post_init__(self):
        """Create click guard from settings when not given."""
        if self.guard is None:
            self.guard = ClickGuard(window_seconds=self.settings.click_debounce_seconds)

    @property
    def session_id(self) -> str:
        return self.settings.session_id

    @property
    def product_name(self) -> Optional[str]:
        """Get current product name (alias for current_product_name)."""
        return self.current_product_name

    def _copy(self, product_id: Optional[str], product_name: Optional[str]) -> "AppContext":
        return AppContext(
            store=self.store,
            engine=self.engine,
            settings=self.settings,
            cache=self.cache,
            guard=self.guard,
            current_product_id=product_id,
            current_product_name=product_name,
        )

    def with_product(self, product_id: str, product_name: Optional[str] = None) -> "AppContext":
        """
        Create new context with product set.

        Immutable pattern - returns new instance instead of modifying self.
        Switching to a different product clears the session's tooth
        assignments (product reference data is kept).

        Args:
            product_id: Product ID to set
            product_name: Optional product name (used for rule matching)

        Returns:
            New AppContext instance with product set

        Example:
            >>> ctx = app_context.with_product(product_id="12", product_name="Crown")
            >>> print(ctx.current_product_id)  # 12
        """
        product_id = str(product_id)
        if self.current_product_id is not None and self.current_product_id != product_id:
            self.store.reset()
        return self._copy(product_id, product_name)

    def clear_product(self) -> "AppContext":
        """
        Create new context with product cleared.

        Returns:
            New AppContext instance with no product set
        """
        return self._copy(None, None)

    def has_product(self) -> bool:
        """Check if a product is currently selected."""
        return self.current_product_id is not None

    def require_product(self) -> str:
        """
        Get current product ID or raise error.

        Useful in operations that require a product.

        Returns:
            Current product ID

        Raises:
            ValueError: If no product is selected
        """
        if not self.has_product():
            raise ValueError(
                "No product selected. Please select a product first."
            )
        return self.current_product_id


def create_app_context(
    cache: Optional[SessionCacheInterface] = None,
    settings: Optional[Settings] = None,
    engine: Optional[ValidationEngine] = None,
) -> AppContext:
    """
    Factory function to create AppContext.

    Args:
        cache: Session cache instance (optional)
        settings: Settings instance (defaults to global settings)
        engine: Validation engine (defaults to the built-in rule catalog)

    Returns:
        AppContext instance with a fresh selection store

    Example:
        >>> from data import create_cache
        >>> ctx = create_app_context(cache=create_cache("sqlite", ":memory:"))
    """
    if settings is None:
        settings = get_settings()

    return AppContext(
        store=TeethSelectionStore(),
        engine=engine or ValidationEngine(),
        settings=settings,
        cache=cache,
    )
