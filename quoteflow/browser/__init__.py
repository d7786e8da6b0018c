"""Browser automation helpers built on Playwright."""

from .session import QuoteFormSession

__all__ = ["QuoteFormSession"]
