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
Pydantic schemas for remote analysis responses.

The analysis service returns loosely structured JSON produced by a language
model. These schemas are the boundary: anything that passes them can be
trusted by the domain services, anything that fails is reported as a
RemoteResponseError (extraction) or AggregationError (final analysis).
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

from clarivalue.domain.models.valuation import ValuationMethod

StrictNumber = Union[StrictInt, StrictFloat]

# Field names used by the analysis service for each method's equity value
METHOD_PAYLOAD_KEYS: Dict[ValuationMethod, str] = {
    ValuationMethod.BOOK_VALUE: "book_value",
    ValuationMethod.REVENUE_MULTIPLE: "equity_value_from_revenue",
    ValuationMethod.EBIT_MULTIPLE: "equity_value_from_ebit",
    ValuationMethod.EBITDA_MULTIPLE: "equity_value_from_ebitda",
    ValuationMethod.PE_MULTIPLE: "equity_value_from_pe",
}


# =============================================================================
# Extraction response
# =============================================================================


class QuestionSchema(BaseModel):
    """One clarification question as sent by the analysis service."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    category: str = Field(default="other")
    question: str = Field(validation_alias=AliasChoices("question", "questionText", "question_text"))
    description: Optional[str] = None
    identified_values: Optional[Any] = Field(
        default=None,
        validation_alias=AliasChoices("identified_values", "identifiedValue", "identified_value"),
    )
    normalization_purpose: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("normalization_purpose", "normalizationPurpose"),
    )
    impact: Optional[str] = None
    source_location: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("source_location", "sourceLocation"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        """Question ids may arrive as integers."""
        if isinstance(v, bool) or v is None:
            raise ValueError("question id is required")
        v = str(v).strip()
        if not v:
            raise ValueError("question id is required")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v: Any) -> str:
        return str(v).strip() if v else "other"


class ClarificationResponseSchema(BaseModel):
    """Extraction response that needs user input before valuation."""

    model_config = ConfigDict(extra="allow")

    requires_user_input: Literal[True] = Field(alias="requiresUserInput")
    financial_questions: List[QuestionSchema] = Field(alias="financialQuestions", min_length=1)
    initial_findings: Optional[Any] = Field(default=None, alias="initialFindings")


# =============================================================================
# Final analysis payload
# =============================================================================


class WeightingMethodSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    business_pattern: Optional[str] = None
    alpha: Optional[StrictNumber] = None
    cycle_length: Optional[StrictInt] = None
    explanation: Optional[str] = None


class ValuationMetricsSchema(BaseModel):
    """Equity value per method; a null or missing field means the method was not run."""

    model_config = ConfigDict(extra="allow")

    book_value: Optional[StrictNumber] = None
    equity_value_from_revenue: Optional[StrictNumber] = None
    equity_value_from_ebit: Optional[StrictNumber] = None
    equity_value_from_ebitda: Optional[StrictNumber] = None
    equity_value_from_pe: Optional[StrictNumber] = None
    weighting_method: Optional[WeightingMethodSchema] = None

    def method_values(self) -> Dict[ValuationMethod, float]:
        values: Dict[ValuationMethod, float] = {}
        for method, key in METHOD_PAYLOAD_KEYS.items():
            value = getattr(self, key)
            if value is not None:
                values[method] = float(value)
        return values


class PeriodDatesSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class FinancialPeriodSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    period: Optional[PeriodDatesSchema] = None
    period_end: Optional[str] = None
    valuation_metrics: ValuationMetricsSchema

    @property
    def end_date(self) -> Optional[str]:
        if self.period and self.period.end_date:
            return self.period.end_date
        return self.period_end

    @property
    def start_date(self) -> Optional[str]:
        return self.period.start_date if self.period else None


class AnalysedDocumentSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    financial_periods: List[FinancialPeriodSchema] = Field(default_factory=list)


class FinalAnalysisSchema(BaseModel):
    """
    Final analysis payload.

    Periods are read from ``financial_periods`` or, when absent, from the
    first entry of ``documents``. Narrative fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    financial_periods: Optional[List[FinancialPeriodSchema]] = None
    documents: Optional[List[AnalysedDocumentSchema]] = None
    business_pattern: Optional[str] = None

    def periods(self) -> List[FinancialPeriodSchema]:
        if self.financial_periods:
            return list(self.financial_periods)
        for document in self.documents or []:
            if document.financial_periods:
                return list(document.financial_periods)
        return []

    def narrative(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})
