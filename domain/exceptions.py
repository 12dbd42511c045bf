"""
Custom exceptions for Archcheck.

All exceptions inherit from ArchcheckBaseException for easier catching.
Each exception includes a message and optional details dict.
"""


class ArchcheckBaseException(Exception):
    """Base exception for all Archcheck-related errors."""

    def __init__(self, message: str, details: dict = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """String representation with details if available."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(ArchcheckBaseException):
    """Input data validation failed (bad tooth number, arch, flag...)."""
    pass


class CatalogError(ArchcheckBaseException):
    """Extraction catalog could not be read or parsed."""
    pass


class CacheError(ArchcheckBaseException):
    """Session cache operation failed."""
    pass


class NotFoundError(ArchcheckBaseException):
    """Requested resource not found."""
    pass


class RuleConfigurationError(ArchcheckBaseException):
    """Validation rule is misconfigured (duplicate id, unknown severity)."""
    pass
