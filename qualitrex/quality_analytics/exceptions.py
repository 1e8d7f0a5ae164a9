"""
Quality Analytics Exceptions

Leaf operations fail fast with one of these. Callers recover by
adjusting input or configuration; nothing here is fatal.
"""


class AnalyticsError(Exception):
    """Base exception for quality analytics errors."""


class FeatureDisabledError(AnalyticsError):
    """Operation invoked while its governing configuration flag is off."""


class EmptyInputError(AnalyticsError, ValueError):
    """A required series has zero elements."""


class InsufficientDataError(AnalyticsError, ValueError):
    """Series is shorter than the operation's minimum length."""

    def __init__(self, message: str, required: int = 0, actual: int = 0):
        super().__init__(message)
        self.required = required
        self.actual = actual


class InvalidInputError(AnalyticsError, ValueError):
    """Mismatched series lengths or another shape violation."""


class ConfigurationError(AnalyticsError, ValueError):
    """Configuration value outside its accepted domain."""
