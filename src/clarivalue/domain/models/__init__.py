"""
Domain models for ClariValue.
"""

from clarivalue.domain.models.valuation import (
    BusinessPattern,
    ClarificationQuestion,
    DocumentInput,
    ManualFigures,
    PeriodAggregate,
    PeriodValuation,
    ValuationInput,
    ValuationMethod,
    ValuationMethodResult,
    ValuationOutcome,
    ValueRange,
    WeightingProfile,
    answer_key,
)

__all__ = [
    "BusinessPattern",
    "ClarificationQuestion",
    "DocumentInput",
    "ManualFigures",
    "PeriodAggregate",
    "PeriodValuation",
    "ValuationInput",
    "ValuationMethod",
    "ValuationMethodResult",
    "ValuationOutcome",
    "ValueRange",
    "WeightingProfile",
    "answer_key",
]
