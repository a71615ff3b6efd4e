# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Valuation Method Aggregator

Provides the per-period "most likely value" from the classical methods
(substance value, EV/Revenue, EV/EBIT, EV/EBITDA, P/E).

Problem being solved:
    A method that cannot be computed for a period (negative EBIT, loss-making
    P/E, negative equity) is reported by the analysis service as 0 or a
    negative number. Averaging those in would drag the value down with
    numbers that are not valuations at all.

Solution:
    Only strictly positive results are usable. The most likely value is the
    mean of the usable results, the range spans the smallest and largest of
    them, and a period with no usable result is "not computable" (None),
    never 0. A negative substance value is flagged separately.

Usage:
    aggregator = ValuationMethodAggregator(display_method_cap=3)
    aggregate = aggregator.aggregate(period)
    if aggregate.computable:
        print(aggregate.most_likely_value, aggregate.range)
"""

import logging
from typing import List, Sequence

from clarivalue.domain.models.valuation import (
    PeriodAggregate,
    PeriodValuation,
    ValuationMethod,
    ValuationMethodResult,
    ValueRange,
)

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_METHOD_CAP = len(ValuationMethod)


def format_formula(values: Sequence[float]) -> str:
    """Averaging formula shown in reports, e.g. ``(120,000 + 80,000) / 2``."""
    if not values:
        return ""
    terms = " + ".join(f"{value:,.0f}" for value in values)
    if len(values) == 1:
        return terms
    return f"({terms}) / {len(values)}"


class ValuationMethodAggregator:
    """Applies exclusion rules and averages the usable valuation methods of a period."""

    def __init__(self, display_method_cap: int = DEFAULT_DISPLAY_METHOD_CAP):
        if display_method_cap < 1:
            raise ValueError("display_method_cap must be at least 1")
        self.display_method_cap = display_method_cap

    def aggregate(self, period: PeriodValuation) -> PeriodAggregate:
        usable: List[ValuationMethodResult] = []
        excluded: List[ValuationMethodResult] = []
        for result in period.method_results:
            if result.usable:
                usable.append(result)
            else:
                excluded.append(result)
                logger.debug(
                    f"Period {period.period_end}: excluding {result.method.value} "
                    f"(value {result.value} is not a valuation)"
                )

        book = period.result_for(ValuationMethod.BOOK_VALUE)
        negative_substance = book is not None and book.value < 0
        if negative_substance:
            logger.info(f"Period {period.period_end}: negative substance value {book.value:,.0f}")

        if not usable:
            logger.warning(f"Period {period.period_end}: no valuation method produced a usable value")
            return PeriodAggregate(
                period_end=period.period_end,
                methods_used_count=0,
                most_likely_value=None,
                range=None,
                excluded_methods=tuple(excluded),
                negative_substance_value=negative_substance,
                substance_value=book.value if book is not None else None,
            )

        values = [result.value for result in usable]
        most_likely = sum(values) / len(values)

        low = min(values)
        if book is not None and book.usable:
            low = min(book.value, low)
        high = max(values)

        return PeriodAggregate(
            period_end=period.period_end,
            methods_used_count=len(usable),
            most_likely_value=most_likely,
            range=ValueRange(low=low, high=high),
            used_methods=tuple(usable),
            excluded_methods=tuple(excluded),
            display_methods=self._display_methods(usable),
            negative_substance_value=negative_substance,
            substance_value=book.value if book is not None else None,
            formula_text=format_formula(values),
        )

    def _display_methods(self, usable: List[ValuationMethodResult]):
        """Highest-value methods when there are more than the cap; display only."""
        if len(usable) <= self.display_method_cap:
            return tuple(usable)
        ranked = sorted(usable, key=lambda result: result.value, reverse=True)
        return tuple(ranked[: self.display_method_cap])
