"""
Builds a ValuationOutcome from the final analysis payload.

Runs the method aggregator over every fiscal period, then the period
weighter over the per-period results.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from clarivalue.domain.exceptions import AggregationError
from clarivalue.domain.models.responses import FinalAnalysisSchema, FinancialPeriodSchema, WeightingMethodSchema
from clarivalue.domain.models.valuation import (
    BusinessPattern,
    PeriodValuation,
    ValuationMethodResult,
    ValuationOutcome,
)
from clarivalue.domain.services.valuation import PeriodWeighter, ValuationMethodAggregator

logger = logging.getLogger(__name__)

_DATE_PATTERNS = (
    re.compile(r"^(?P<year>\d{4})(?:-(?P<month>\d{1,2})(?:-(?P<day>\d{1,2}))?)?(?:$|[T\s])"),
    re.compile(r"^(?P<day>\d{1,2})\.(?P<month>\d{1,2})\.(?P<year>\d{4})$"),
)


def period_sort_key(period_end: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """
    Parse a period end date into (year, month, day).

    Accepts full dates, year-month and bare years; a missing month or day
    counts as the end of the year or month. Returns None when unparseable.
    """
    if not period_end:
        return None
    text = period_end.strip()
    for pattern in _DATE_PATTERNS:
        match = pattern.match(text)
        if match:
            month = int(match.group("month") or 12)
            day = int(match.group("day") or 31)
            if 1 <= month <= 12 and 1 <= day <= 31:
                return int(match.group("year")), month, day
    return None


def to_period_valuation(period: FinancialPeriodSchema) -> PeriodValuation:
    values = period.valuation_metrics.method_values()
    if not values:
        raise AggregationError(f"Period {period.end_date or '?'} has no valuation method figures")
    return PeriodValuation(
        period_end=period.end_date,
        period_start=period.start_date,
        method_results=tuple(ValuationMethodResult(method=m, value=v) for m, v in values.items()),
    )


def order_newest_first(periods: List[PeriodValuation]) -> List[PeriodValuation]:
    """Sort dated periods newest first; periods without a parseable end date follow in the given order."""
    dated = [(period_sort_key(p.period_end), p) for p in periods]
    undated = [p for key, p in dated if key is None]
    if undated:
        logger.warning(f"{len(undated)} period(s) without a parseable end date are treated as the oldest")
    ordered = sorted(((key, p) for key, p in dated if key is not None), key=lambda item: item[0], reverse=True)
    return [p for _, p in ordered] + undated


def parse_business_pattern(value: Optional[str], default: BusinessPattern) -> BusinessPattern:
    if not value:
        return default
    try:
        return BusinessPattern(value.strip().lower())
    except ValueError:
        logger.warning(f"Unknown business pattern {value!r}, using {default.value}")
        return default


def find_weighting_method(periods: List[FinancialPeriodSchema]) -> Optional[WeightingMethodSchema]:
    for period in periods:
        if period.valuation_metrics.weighting_method is not None:
            return period.valuation_metrics.weighting_method
    return None


class OutcomeBuilder:
    """Turns a final analysis payload into a ValuationOutcome."""

    def __init__(
        self,
        aggregator: Optional[ValuationMethodAggregator] = None,
        weighter: Optional[PeriodWeighter] = None,
        default_pattern: BusinessPattern = BusinessPattern.STABLE,
    ):
        self.aggregator = aggregator or ValuationMethodAggregator()
        self.weighter = weighter or PeriodWeighter()
        self.default_pattern = default_pattern

    def build(self, analysis: Dict[str, Any]) -> ValuationOutcome:
        """
        Raises:
            AggregationError: If periods or method figures are missing or not numeric,
                or no period has a computable value
        """
        try:
            schema = FinalAnalysisSchema.model_validate(analysis)
        except ValidationError as e:
            raise AggregationError(f"Final analysis has missing or non-numeric valuation figures: {e}") from e

        raw_periods = schema.periods()
        if not raw_periods:
            raise AggregationError("Final analysis contains no fiscal periods")

        periods = order_newest_first([to_period_valuation(p) for p in raw_periods])

        weighting = find_weighting_method(raw_periods)
        pattern_name = schema.business_pattern or (weighting.business_pattern if weighting else None)
        pattern = parse_business_pattern(pattern_name, self.default_pattern)

        aggregates = [self.aggregator.aggregate(period) for period in periods]
        blended = self.weighter.blend(
            aggregates,
            business_pattern=pattern,
            alpha=float(weighting.alpha) if weighting and weighting.alpha is not None else None,
            cycle_length=weighting.cycle_length if weighting else None,
            explanation=weighting.explanation if weighting else None,
        )

        logger.info(
            f"Valuation complete: {blended.most_likely_value:,.0f} "
            f"(range {blended.range.low:,.0f} - {blended.range.high:,.0f}, {len(periods)} periods)"
        )

        return ValuationOutcome(
            most_likely_value=blended.most_likely_value,
            range=blended.range,
            methods_used_count=blended.methods_used_count,
            per_period=tuple(periods),
            period_aggregates=tuple(aggregates),
            weighting=blended.profile,
            narrative=schema.narrative(),
        )
