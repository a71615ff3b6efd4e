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
Period Weighter

Blends several fiscal periods into one valuation with exponential decay
weights: weight(i) is proportional to alpha**i for period age i (0 = most
recent), normalized to sum to 1.

    growth    low alpha, weight concentrated on the latest period
    cyclical  intermediate alpha, optional same-phase averaging
    stable    high alpha, weight spread evenly

The business pattern comes from the analysis service; it is never inferred
here. Periods without a computable value get weight 0 and the remaining
weights are renormalized over the computable periods, youngest first.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from clarivalue.domain.exceptions import AggregationError
from clarivalue.domain.models.valuation import BusinessPattern, PeriodAggregate, ValueRange, WeightingProfile

logger = logging.getLogger(__name__)

DEFAULT_ALPHAS: Dict[BusinessPattern, float] = {
    BusinessPattern.GROWTH: 0.3,
    BusinessPattern.CYCLICAL: 0.6,
    BusinessPattern.STABLE: 0.8,
}

_PATTERN_RATIONALE = {
    BusinessPattern.GROWTH: "Growth company: older periods are less representative, so weight is concentrated "
    "on the most recent period",
    BusinessPattern.CYCLICAL: "Cyclical company: an intermediate decay spreads weight across the business cycle",
    BusinessPattern.STABLE: "Stable company: weight is spread evenly across periods",
}


@dataclass(frozen=True)
class BlendedValuation:
    """Single valuation produced from one or more periods."""

    most_likely_value: float
    range: ValueRange
    methods_used_count: int
    profile: Optional[WeightingProfile] = None


def decay_weights(count: int, alpha: float) -> List[float]:
    """Normalized alpha**i weights, newest first."""
    if count < 1:
        raise ValueError("count must be at least 1")
    if not 0 < alpha <= 1:
        raise ValueError(f"alpha must be in (0, 1], got {alpha}")

    raw = [alpha**age for age in range(count)]
    total = sum(raw)
    return [weight / total for weight in raw]


class PeriodWeighter:
    """Computes business-pattern dependent period weights and the blended value."""

    def __init__(self, alphas: Optional[Dict[BusinessPattern, float]] = None):
        self.alphas = dict(DEFAULT_ALPHAS)
        if alphas:
            self.alphas.update(alphas)
        for pattern, alpha in self.alphas.items():
            if not 0 < alpha <= 1:
                raise ValueError(f"alpha for {pattern.value} must be in (0, 1], got {alpha}")

    def alpha_for(self, pattern: BusinessPattern, override: Optional[float] = None) -> float:
        if override is not None:
            if 0 < override <= 1:
                return float(override)
            logger.warning(f"Ignoring out-of-range alpha {override} for {pattern.value} pattern")
        return self.alphas[pattern]

    def blend(
        self,
        aggregates: Sequence[PeriodAggregate],
        business_pattern: BusinessPattern,
        alpha: Optional[float] = None,
        cycle_length: Optional[int] = None,
        explanation: Optional[str] = None,
    ) -> BlendedValuation:
        """
        Blend per-period aggregates (ordered newest first).

        Raises:
            AggregationError: If no period has a computable value
        """
        if not aggregates:
            raise AggregationError("No fiscal periods to value")

        computable = [index for index, aggregate in enumerate(aggregates) if aggregate.computable]
        if not computable:
            raise AggregationError("No valuation method produced a usable value for any fiscal period")

        newest = aggregates[computable[0]]

        if len(aggregates) == 1:
            logger.debug("Single fiscal period, weighting skipped")
            return BlendedValuation(
                most_likely_value=newest.most_likely_value,
                range=newest.range,
                methods_used_count=newest.methods_used_count,
            )

        resolved_alpha = self.alpha_for(business_pattern, alpha)
        compact_weights = decay_weights(len(computable), resolved_alpha)

        weights = [0.0] * len(aggregates)
        for index, weight in zip(computable, compact_weights):
            weights[index] = weight

        points = [(a.most_likely_value, a.range.low, a.range.high) for a in (aggregates[i] for i in computable)]
        phase_averaged = False
        if business_pattern is BusinessPattern.CYCLICAL and cycle_length and 1 < cycle_length < len(points):
            points = self._average_same_phase(points, cycle_length)
            phase_averaged = True

        value = sum(w * p[0] for w, p in zip(compact_weights, points))
        low = sum(w * p[1] for w, p in zip(compact_weights, points))
        high = sum(w * p[2] for w, p in zip(compact_weights, points))

        rationale = self._rationale(
            business_pattern,
            resolved_alpha,
            weights,
            excluded=len(aggregates) - len(computable),
            cycle_length=cycle_length if phase_averaged else None,
            explanation=explanation,
        )
        logger.info(
            f"Blended {len(computable)} of {len(aggregates)} periods ({business_pattern.value}, "
            f"alpha={resolved_alpha:.2f}): {value:,.0f}"
        )

        return BlendedValuation(
            most_likely_value=value,
            range=ValueRange(low=min(low, value), high=max(high, value)),
            methods_used_count=newest.methods_used_count,
            profile=WeightingProfile(
                business_pattern=business_pattern,
                alpha=resolved_alpha,
                weights=tuple(weights),
                rationale=rationale,
                cycle_length=cycle_length if phase_averaged else None,
            ),
        )

    @staticmethod
    def _average_same_phase(
        points: List[Tuple[float, float, float]], cycle_length: int
    ) -> List[Tuple[float, float, float]]:
        """Replace each period's figures with the mean over periods at the same cycle phase."""
        phases: Dict[int, List[Tuple[float, float, float]]] = {}
        for age, point in enumerate(points):
            phases.setdefault(age % cycle_length, []).append(point)

        averaged = []
        for age in range(len(points)):
            group = phases[age % cycle_length]
            averaged.append(tuple(sum(p[k] for p in group) / len(group) for k in range(3)))
        return averaged

    @staticmethod
    def _rationale(
        pattern: BusinessPattern,
        alpha: float,
        weights: Sequence[float],
        excluded: int,
        cycle_length: Optional[int],
        explanation: Optional[str],
    ) -> str:
        shares = ", ".join(f"{weight:.0%}" for weight in weights)
        text = f"{_PATTERN_RATIONALE[pattern]} (alpha {alpha:.2f}, {len(weights)} periods, weights {shares})."
        if excluded:
            text += f" {excluded} period(s) without a computable value were excluded."
        if cycle_length:
            text += f" Same-phase periods were averaged over a {cycle_length}-period cycle."
        if explanation:
            text += f" {explanation.strip()}"
        return text
