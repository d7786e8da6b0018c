"""End-to-end harness for the insurance quote calculator form."""

__version__ = "0.1.0"
