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
Answer collection for one clarification round.

Answers are keyed by ``{category}_{id}``. The collector is owned by a single
session; persistence goes through an explicit ProgressStore call made by the
session, never through shared state.
"""

import logging
from typing import Dict, Iterable, Mapping, Sequence

from clarivalue.domain.models.valuation import ClarificationQuestion, answer_key
from clarivalue.domain.services.clarification.templates import default_answer_for

logger = logging.getLogger(__name__)

REQUIRED_ANSWER_ERROR = "An answer is required"


class AnswerCollector:
    """Holds the evolving AnswerSet and per-field validation errors."""

    def __init__(self) -> None:
        self._answers: Dict[str, str] = {}

    @property
    def answers(self) -> Dict[str, str]:
        """Copy of the current AnswerSet."""
        return dict(self._answers)

    def set_answer(self, question_id: str, category: str, text: str) -> str:
        """
        Upsert one answer.

        Blank text is stored as given (the user cleared the field) and shows
        up as a field error until replaced.

        Returns:
            The answer key
        """
        key = answer_key(category, str(question_id))
        self._answers[key] = "" if text is None else str(text)
        return key

    def field_errors(self, questions: Sequence[ClarificationQuestion]) -> Dict[str, str]:
        """Field-level errors for every question without a non-empty trimmed answer."""
        return {
            question.answer_key: REQUIRED_ANSWER_ERROR
            for question in questions
            if not self._answers.get(question.answer_key, "").strip()
        }

    def all_answered(self, questions: Sequence[ClarificationQuestion]) -> bool:
        return not self.field_errors(questions)

    def skip_all(self, questions: Iterable[ClarificationQuestion]) -> Dict[str, str]:
        """
        Replace the AnswerSet with category default answers.

        Returns:
            The synthesized answers, one per question
        """
        defaults = {question.answer_key: default_answer_for(question.category) for question in questions}
        self._answers = dict(defaults)
        logger.info(f"Synthesized {len(defaults)} default answers")
        return dict(defaults)

    def restore(self, saved: Mapping[str, str], questions: Sequence[ClarificationQuestion]) -> int:
        """
        Merge previously saved answers that belong to the current questions.

        Answers already entered in this round win over saved ones.

        Returns:
            Number of answers restored
        """
        known_keys = {question.answer_key for question in questions}
        restored = 0
        for key, text in saved.items():
            if key in known_keys and key not in self._answers and isinstance(text, str):
                self._answers[key] = text
                restored += 1
        if restored:
            logger.info(f"Restored {restored} saved answers")
        return restored
