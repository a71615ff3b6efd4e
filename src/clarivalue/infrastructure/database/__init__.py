"""
Clarification progress persistence.
"""

from clarivalue.infrastructure.database.progress_store import (
    InMemoryProgressStore,
    ProgressStore,
    SqlProgressStore,
    ValuationProgress,
)

__all__ = ["InMemoryProgressStore", "ProgressStore", "SqlProgressStore", "ValuationProgress"]
