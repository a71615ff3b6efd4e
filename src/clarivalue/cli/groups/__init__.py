"""
CLI command groups for ClariValue
"""

from .progress import progress
from .valuation import valuation

__all__ = ["progress", "valuation"]
