"""Resolution operations on the local package graph.

- orphans: hanging package detection (mark/sweep from explicit packages)
"""

from .orphans import (
    SafetyState,
    build_provides_index,
    find_hanging_packages,
    hanging_packages,
)

__all__ = [
    'SafetyState',
    'build_provides_index',
    'find_hanging_packages',
    'hanging_packages',
]
