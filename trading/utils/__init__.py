"""Utilities - logging setup."""

from trading.utils.logging import setup_logging

__all__ = ["setup_logging"]
