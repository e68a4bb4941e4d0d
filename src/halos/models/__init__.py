"""
Value objects describing the systems the algorithms operate on.
"""

from .system import CR3BPSystem, NAMED_SYSTEMS

__all__ = [
    'CR3BPSystem',
    'NAMED_SYSTEMS',
]
