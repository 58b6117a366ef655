"""Custom exceptions for the Schedule A engine.

The engine degrades gracefully on dirty data: missing classifications,
unknown categories and absent flags become warnings and conservative
defaults. Only caller-contract violations and bad configuration raise,
and every raised error inherits from ScheduleAError.

Example:
    try:
        report = build_schedule_a(transactions, categories, tax_year=1850)
    except ValidationError as e:
        logger.error("schedule_a_rejected", field=e.field, error=str(e))
    except ScheduleAError as e:
        logger.error("schedule_a_failed", error=str(e))
"""

from typing import Any, Optional


class ScheduleAError(Exception):
    """Base exception for all Schedule A engine errors.

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
        """Initialize ScheduleAError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the caller can fix the problem and retry.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ValidationError(ScheduleAError):
    """Error raised when the caller breaks the engine's input contract.

    This is reserved for programming errors upstream, such as a tax year
    before the organization existed or two categories sharing an id with
    different classifications. Data-quality problems are never raised.

    Attributes:
        field: The input that failed validation.
        value: The invalid value.
        constraint: The rule that was violated.

    Example:
        >>> raise ValidationError(
        ...     "Tax year precedes organization formation",
        ...     field="tax_year",
        ...     value=2009,
        ...     constraint="tax_year >= 2012",
        ... )
        ValidationError: Tax year precedes organization formation
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
        """Initialize ValidationError.

        Args:
            message: Human-readable error description.
            field: The name of the input that failed validation.
            value: The invalid value.
            constraint: Description of the validation rule violated.
            details: Optional dictionary with additional context.
            recoverable: Whether the caller can correct the input and retry.
                Defaults to True.
        """
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


class ConfigurationError(ScheduleAError):
    """Error raised when engine configuration is invalid.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).

    Example:
        >>> raise ConfigurationError(
        ...     "Unknown contributor fallback policy",
        ...     config_key="SCHEDULE_A_CONTRIBUTOR_FALLBACK",
        ...     expected="description or distinct",
        ...     actual="fuzzy",
        ... )
        ConfigurationError: Unknown contributor fallback policy
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
        """Initialize ConfigurationError.

        Args:
            message: Human-readable error description.
            config_key: The name of the configuration key that is problematic.
            expected: Description of what value was expected.
            actual: The actual value found.
            details: Optional dictionary with additional context.
            recoverable: Defaults to False since configuration errors
                require a restart with corrected settings.
        """
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


__all__ = [
    "ScheduleAError",
    "ValidationError",
    "ConfigurationError",
]
