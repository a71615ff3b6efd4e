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
Clarification Gate

Problem being solved:
    The extraction call either returns a finished analysis or asks the user
    to clarify items (owner's salary, one-time costs, ...) first. The analysis
    service keeps no state between calls, so the second call must carry the
    original input and exactly the questions it produced.

Solution:
    Parse the extraction response at the boundary into ClarificationRequired
    or AnalysisReady. On ClarificationRequired, cache the submitted input and
    a deep copy of the raw question list; build_finalization_payload() sends
    both back untouched together with the answers.

Usage:
    gate = ClarificationGate()
    result = gate.evaluate(response, valuation_input)
    if isinstance(result, ClarificationRequired):
        payload = gate.build_finalization_payload(answers)
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from clarivalue.domain.exceptions import RemoteResponseError, SessionStateError
from clarivalue.domain.models.responses import ClarificationResponseSchema, QuestionSchema
from clarivalue.domain.models.valuation import ClarificationQuestion, ValuationInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClarificationRequired:
    questions: Tuple[ClarificationQuestion, ...]
    initial_findings: Optional[Any] = None


@dataclass(frozen=True)
class AnalysisReady:
    analysis: Dict[str, Any] = field(default_factory=dict)


ExtractionResult = Union[ClarificationRequired, AnalysisReady]


def to_question(schema: QuestionSchema) -> ClarificationQuestion:
    return ClarificationQuestion(
        id=schema.id,
        category=schema.category,
        question_text=schema.question,
        identified_value=schema.identified_values,
        normalization_purpose=schema.normalization_purpose,
        impact=schema.impact,
        source_location=schema.source_location,
    )


class ClarificationGate:
    """Interprets extraction responses and holds the pending clarification round."""

    def __init__(self) -> None:
        self._original_input: Optional[ValuationInput] = None
        self._original_questions: Optional[List[Any]] = None
        self._questions: Tuple[ClarificationQuestion, ...] = ()

    @property
    def pending(self) -> bool:
        return self._original_questions is not None

    @property
    def questions(self) -> Tuple[ClarificationQuestion, ...]:
        return self._questions

    @property
    def original_input(self) -> Optional[ValuationInput]:
        return self._original_input

    @property
    def original_questions(self) -> Optional[List[Any]]:
        """Deep copy of the raw questions as received."""
        return copy.deepcopy(self._original_questions)

    def evaluate(self, response: Any, valuation_input: ValuationInput) -> ExtractionResult:
        """
        Route an extraction response.

        Raises:
            RemoteResponseError: If the response is not an object or a
                clarification request is malformed
        """
        if not isinstance(response, dict):
            raise RemoteResponseError(f"Extraction response must be a JSON object, got {type(response).__name__}")

        if response.get("requiresUserInput") is True and response.get("financialQuestions"):
            raw_questions = copy.deepcopy(response["financialQuestions"])
            try:
                parsed = ClarificationResponseSchema.model_validate(response)
            except ValidationError as e:
                raise RemoteResponseError(f"Malformed clarification questions: {e}") from e

            questions = tuple(to_question(q) for q in parsed.financial_questions)
            keys = [q.answer_key for q in questions]
            if len(set(keys)) != len(keys):
                raise RemoteResponseError("Clarification questions contain duplicate category/id pairs")

            self._original_input = valuation_input
            self._original_questions = raw_questions
            self._questions = questions
            logger.info(f"Extraction requires user input: {len(questions)} clarification questions")
            return ClarificationRequired(questions=questions, initial_findings=parsed.initial_findings)

        analysis = response.get("financialAnalysis") or response
        if not isinstance(analysis, dict):
            raise RemoteResponseError("financialAnalysis must be a JSON object")
        logger.info("Extraction returned a completed analysis")
        return AnalysisReady(analysis=analysis)

    def build_finalization_payload(self, answers: Mapping[str, str]) -> Dict[str, Any]:
        """Original input plus answers and the original questions, verbatim."""
        if not self.pending or self._original_input is None:
            raise SessionStateError("No clarification round is pending")

        payload = self._original_input.to_payload()
        payload["answers"] = dict(answers)
        payload["originalQuestions"] = copy.deepcopy(self._original_questions)
        return payload
