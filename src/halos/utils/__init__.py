"""
Shared utilities: physical constants of the named systems.
"""

from .constants import SYSTEM_MASSES

__all__ = ['SYSTEM_MASSES']
