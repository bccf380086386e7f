"""Custom exceptions for the Finsight analytics core.

All exceptions inherit from FinsightError, so callers can catch every
core-specific failure with a single handler.

Insufficient data is never an error in this package: forecasts return
``None`` and detectors return empty lists. The exceptions below cover
misconfiguration, invalid arguments and failures of optional collaborators.

Example:
    try:
        analytics = FinanceAnalytics.from_config(config)
    except ConfigurationError as e:
        logger.error("analytics_init_failed", key=e.config_key)
        raise
"""

from typing import Any, Optional


class FinsightError(Exception):
    """Base exception for all Finsight errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ValidationError(FinsightError):
    """Error raised when an argument to an analytics operation is invalid.

    Attributes:
        field: The argument that failed validation.
        value: The invalid value.
        constraint: The validation constraint that was violated.

    Example:
        >>> raise ValidationError(
        ...     "days_ahead must be positive",
        ...     field="days_ahead",
        ...     value=0,
        ...     constraint="> 0",
        ... )
        ValidationError: days_ahead must be positive
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


class ConfigurationError(FinsightError):
    """Error raised when analytics configuration is invalid.

    Raised at construction time, for example when the keyword table
    contains a blank keyword. Configuration errors are not recoverable
    at runtime.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected
        self.actual = actual

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected
        if actual is not None:
            self.details["actual"] = actual


class EnrichmentError(FinsightError):
    """Error raised by an optional insight enricher.

    Enrichers wrap external text-generation services. The insight composer
    logs and skips these failures, so they never break a core result.

    Attributes:
        enricher: Name of the enricher that failed.
        api_error: The underlying service error message (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        enricher: Optional[str] = None,
        api_error: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.enricher = enricher
        self.api_error = api_error

        if enricher:
            self.details["enricher"] = enricher
        if api_error:
            self.details["api_error"] = api_error


__all__ = [
    "FinsightError",
    "ValidationError",
    "ConfigurationError",
    "EnrichmentError",
]
