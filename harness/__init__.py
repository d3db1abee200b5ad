"""Command-line agent harness with local file tools."""

__version__ = "0.1.0"
