"""Custom exceptions used across quoteflow."""


class QuoteFlowError(Exception):
    """Base error for the harness."""


class ConfigError(QuoteFlowError):
    """Configuration related error."""


class SelectorValidationError(ConfigError):
    """Raised when a selector configuration fails validation."""


class ScenarioValidationError(ConfigError):
    """Raised when a scenario file fails validation."""


class BrowserError(QuoteFlowError):
    """Raised when browser automation fails."""


class NavigationError(BrowserError):
    """Raised when the form page or its submit control never became ready."""


class ResultTimeoutError(BrowserError, TimeoutError):
    """Raised when the quote result field is never populated."""
