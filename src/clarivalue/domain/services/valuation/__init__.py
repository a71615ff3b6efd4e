"""
Valuation Services
==================

Per-period averaging of the classical valuation methods and the
multi-period blend.

    ValuationMethodAggregator  usable-method mean and low/high range per period
    PeriodWeighter             exponential decay blend across fiscal periods
"""

from clarivalue.domain.services.valuation.method_aggregator import (
    DEFAULT_DISPLAY_METHOD_CAP,
    ValuationMethodAggregator,
    format_formula,
)
from clarivalue.domain.services.valuation.period_weighter import (
    DEFAULT_ALPHAS,
    BlendedValuation,
    PeriodWeighter,
    decay_weights,
)

__all__ = [
    "BlendedValuation",
    "DEFAULT_ALPHAS",
    "DEFAULT_DISPLAY_METHOD_CAP",
    "PeriodWeighter",
    "ValuationMethodAggregator",
    "decay_weights",
    "format_formula",
]
