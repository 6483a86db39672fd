"""
Module: utils
Description: Package initialization for utility functions.

Current utilities:
- logger: Structured logging configuration and helpers
- batch_helpers: Batch splitting and request entry builders
"""

__all__ = []
