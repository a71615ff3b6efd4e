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
Valuation domain models.

Inputs submitted by the user, clarification questions produced by the remote
analysis service, per-method and per-period valuation results, and the final
ValuationOutcome artifact.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def answer_key(category: str, question_id: str) -> str:
    """Key under which an answer is stored: ``{category}_{id}``."""
    return f"{category}_{question_id}"


# =============================================================================
# Input
# =============================================================================


@dataclass(frozen=True)
class ManualFigures:
    """Four headline figures typed in by the user."""

    revenue: float
    profit: float
    assets: float
    liabilities: float

    def to_payload(self) -> Dict[str, float]:
        return {
            "revenue": self.revenue,
            "profit": self.profit,
            "assets": self.assets,
            "liabilities": self.liabilities,
        }


@dataclass(frozen=True)
class DocumentInput:
    """Uploaded financial statement."""

    content: bytes
    mime_type: str
    filename: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        return {
            "fileBlob": base64.b64encode(self.content).decode("ascii"),
            "mimeType": self.mime_type,
        }


@dataclass(frozen=True)
class ValuationInput:
    """
    Input for one valuation round.

    Exactly one of ``manual_figures`` or ``document`` is set. Instances are
    immutable so the cached copy re-sent with the answers is the one the
    extraction call saw.
    """

    company_name: str
    manual_figures: Optional[ManualFigures] = None
    document: Optional[DocumentInput] = None
    company_id: Optional[str] = None

    @property
    def is_manual(self) -> bool:
        return self.manual_figures is not None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"companyName": self.company_name}
        if self.company_id:
            payload["companyId"] = self.company_id
        if self.manual_figures is not None:
            payload["manualFigures"] = self.manual_figures.to_payload()
        elif self.document is not None:
            payload.update(self.document.to_payload())
        return payload


# =============================================================================
# Clarification
# =============================================================================


@dataclass(frozen=True)
class ClarificationQuestion:
    """Read-only view of one question produced by the extraction call."""

    id: str
    category: str
    question_text: str
    identified_value: Optional[Any] = None
    normalization_purpose: Optional[str] = None
    impact: Optional[str] = None
    source_location: Optional[str] = None

    @property
    def answer_key(self) -> str:
        return answer_key(self.category, self.id)


# =============================================================================
# Valuation methods and periods
# =============================================================================


class ValuationMethod(Enum):
    """Classical valuation methods reported per fiscal period"""

    BOOK_VALUE = "book_value"
    REVENUE_MULTIPLE = "revenue_multiple"
    EBIT_MULTIPLE = "ebit_multiple"
    EBITDA_MULTIPLE = "ebitda_multiple"
    PE_MULTIPLE = "pe_multiple"

    @property
    def label(self) -> str:
        return _METHOD_LABELS[self]


_METHOD_LABELS = {
    ValuationMethod.BOOK_VALUE: "Substance value",
    ValuationMethod.REVENUE_MULTIPLE: "EV/Revenue",
    ValuationMethod.EBIT_MULTIPLE: "EV/EBIT",
    ValuationMethod.EBITDA_MULTIPLE: "EV/EBITDA",
    ValuationMethod.PE_MULTIPLE: "P/E",
}


@dataclass(frozen=True)
class ValuationMethodResult:
    """Equity value estimate of one method; ``value <= 0`` means not applicable."""

    method: ValuationMethod
    value: float

    @property
    def usable(self) -> bool:
        return self.value > 0


@dataclass(frozen=True)
class PeriodValuation:
    """Raw method outputs for one fiscal period."""

    period_end: Optional[str]
    method_results: Tuple[ValuationMethodResult, ...]
    period_start: Optional[str] = None

    def result_for(self, method: ValuationMethod) -> Optional[ValuationMethodResult]:
        for result in self.method_results:
            if result.method is method:
                return result
        return None


@dataclass(frozen=True)
class ValueRange:
    low: float
    high: float


@dataclass(frozen=True)
class PeriodAggregate:
    """
    Averaged valuation of one period.

    ``most_likely_value`` and ``range`` are None when no method produced a
    usable value; callers must treat that as "not computable", never as 0.
    """

    period_end: Optional[str]
    methods_used_count: int
    most_likely_value: Optional[float]
    range: Optional[ValueRange]
    used_methods: Tuple[ValuationMethodResult, ...] = ()
    excluded_methods: Tuple[ValuationMethodResult, ...] = ()
    display_methods: Tuple[ValuationMethodResult, ...] = ()
    negative_substance_value: bool = False
    substance_value: Optional[float] = None
    formula_text: str = ""

    @property
    def computable(self) -> bool:
        return self.most_likely_value is not None


# =============================================================================
# Weighting
# =============================================================================


class BusinessPattern(Enum):
    """Business pattern driving how fiscal periods are weighted"""

    GROWTH = "growth"
    CYCLICAL = "cyclical"
    STABLE = "stable"


@dataclass(frozen=True)
class WeightingProfile:
    """
    Provenance of a multi-period blend; weights are newest-period-first.

    ``weights`` has one entry per period. A period without a computable
    value gets weight 0 and the decay runs over the computable periods only,
    so the non-zero weights never increase with age and sum to 1 even when
    the newest period is the excluded one.
    """

    business_pattern: BusinessPattern
    alpha: float
    weights: Tuple[float, ...]
    rationale: str
    cycle_length: Optional[int] = None
    method: str = "exponential"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "business_pattern": self.business_pattern.value,
            "alpha": self.alpha,
            "weights": list(self.weights),
            "period_count": len(self.weights),
            "cycle_length": self.cycle_length,
            "rationale": self.rationale,
        }


# =============================================================================
# Outcome
# =============================================================================


@dataclass(frozen=True)
class ValuationOutcome:
    """Final artifact of a completed valuation session."""

    most_likely_value: float
    range: ValueRange
    methods_used_count: int
    per_period: Tuple[PeriodValuation, ...]
    period_aggregates: Tuple[PeriodAggregate, ...] = ()
    weighting: Optional[WeightingProfile] = None
    narrative: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        periods: List[Dict[str, Any]] = []
        for aggregate in self.period_aggregates:
            periods.append(
                {
                    "period_end": aggregate.period_end,
                    "computable": aggregate.computable,
                    "most_likely_value": aggregate.most_likely_value,
                    "range": (
                        {"low": aggregate.range.low, "high": aggregate.range.high} if aggregate.range else None
                    ),
                    "methods_used_count": aggregate.methods_used_count,
                    "methods": {r.method.value: r.value for r in aggregate.used_methods},
                    "excluded_methods": [r.method.value for r in aggregate.excluded_methods],
                    "negative_substance_value": aggregate.negative_substance_value,
                    "formula": aggregate.formula_text,
                }
            )

        return {
            "most_likely_value": self.most_likely_value,
            "range": {"low": self.range.low, "high": self.range.high},
            "methods_used_count": self.methods_used_count,
            "periods": periods,
            "weighting": self.weighting.to_dict() if self.weighting else None,
            "narrative": dict(self.narrative),
        }
