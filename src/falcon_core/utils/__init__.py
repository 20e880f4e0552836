"""Utility functions for falcon_core.

This module contains internal utility functions.
"""

from falcon_core.utils.lazy_import import lazy_import

__all__ = [
    "lazy_import",
]
