"""Domain models and types for fundflow.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Easy to test
- Business logic separated from infrastructure
"""

from fundflow.domain.models import BasisPoints, Match, MatchType, Money

__all__ = ["Money", "BasisPoints", "Match", "MatchType"]
