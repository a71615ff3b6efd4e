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
Valuation Session

Drives one valuation attempt through its states:

    COLLECTING_INPUT -> SUBMITTING -> AWAITING_ANSWERS <-> SUBMITTING_ANSWERS
                                   \\                      |
                                    +-> FINALIZING <-------+
                                          -> COMPLETE

ERROR is reachable from every non-terminal state and is final; a new session
is needed to try again. The only suspension points are the two remote calls,
and a session refuses a second call while one is in flight.

Usage:
    session = ValuationSession(executor)
    await session.submit(build_manual_input("Acme Oy", "350 000", "45 000", "120 000", "70 000"))
    if session.state is SessionState.AWAITING_ANSWERS:
        for q in session.questions:
            session.answer(q.id, q.category, "...")
        await session.finalize()
    print(session.outcome.most_likely_value)
"""

import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from clarivalue.application.outcome_builder import OutcomeBuilder
from clarivalue.domain.exceptions import (
    AggregationError,
    ClarificationIncompleteError,
    InputValidationError,
    ProgressStoreError,
    RemoteResponseError,
    SessionStateError,
)
from clarivalue.domain.models.valuation import (
    BusinessPattern,
    ClarificationQuestion,
    ValuationInput,
    ValuationOutcome,
    answer_key,
)
from clarivalue.domain.services.clarification import (
    REQUIRED_ANSWER_ERROR,
    AnswerCollector,
    ClarificationGate,
    ClarificationRequired,
)
from clarivalue.domain.services.input_validator import validate_input
from clarivalue.domain.services.valuation import PeriodWeighter, ValuationMethodAggregator
from clarivalue.infrastructure.database import ProgressStore
from clarivalue.infrastructure.remote import RemoteCallExecutor, RetryPolicy

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Valuation session lifecycle"""

    COLLECTING_INPUT = "collecting_input"
    SUBMITTING = "submitting"
    AWAITING_ANSWERS = "awaiting_answers"
    SUBMITTING_ANSWERS = "submitting_answers"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETE, SessionState.ERROR)

    @property
    def is_busy(self) -> bool:
        return self in (SessionState.SUBMITTING, SessionState.SUBMITTING_ANSWERS, SessionState.FINALIZING)


VALID_TRANSITIONS = {
    SessionState.COLLECTING_INPUT: {SessionState.SUBMITTING},
    SessionState.SUBMITTING: {SessionState.AWAITING_ANSWERS, SessionState.FINALIZING},
    SessionState.AWAITING_ANSWERS: {SessionState.SUBMITTING_ANSWERS},
    SessionState.SUBMITTING_ANSWERS: {SessionState.AWAITING_ANSWERS, SessionState.FINALIZING},
    SessionState.FINALIZING: {SessionState.COMPLETE},
    SessionState.COMPLETE: set(),
    SessionState.ERROR: set(),
}


class ValuationSession:
    """State machine for one valuation attempt; owns its AnswerSet and cached input."""

    def __init__(
        self,
        executor: RemoteCallExecutor,
        session_id: Optional[str] = None,
        progress_store: Optional[ProgressStore] = None,
        outcome_builder: Optional[OutcomeBuilder] = None,
        extraction_function: str = "extract",
        finalization_function: str = "finalize",
    ):
        self.executor = executor
        self.session_id = session_id or uuid.uuid4().hex
        self.progress_store = progress_store
        self.outcome_builder = outcome_builder or OutcomeBuilder()
        self.extraction_function = extraction_function
        self.finalization_function = finalization_function

        self._gate = ClarificationGate()
        self._collector = AnswerCollector()
        self._state = SessionState.COLLECTING_INPUT
        self._input: Optional[ValuationInput] = None
        self._outcome: Optional[ValuationOutcome] = None
        self._exception: Optional[BaseException] = None
        self._initial_findings: Optional[Any] = None

    @classmethod
    def from_settings(
        cls,
        settings,
        transport,
        progress_store: Optional[ProgressStore] = None,
        session_id: Optional[str] = None,
        sleep=None,
    ) -> "ValuationSession":
        """Wire a session from ClariValueConfig and a remote transport."""
        executor = RemoteCallExecutor(
            transport,
            max_retries=settings.remote.max_retries,
            base_delay=settings.remote.base_delay,
            retry_policy=RetryPolicy(settings.remote.retry_policy),
            sleep=sleep,
        )
        builder = OutcomeBuilder(
            aggregator=ValuationMethodAggregator(settings.aggregation.display_method_cap),
            weighter=PeriodWeighter(settings.weighting.alphas()),
            default_pattern=BusinessPattern(settings.weighting.default_pattern),
        )
        return cls(
            executor,
            session_id=session_id,
            progress_store=progress_store,
            outcome_builder=builder,
            extraction_function=settings.remote.extraction_function,
            finalization_function=settings.remote.finalization_function,
        )

    # ------------------------------------------------------------------
    # Read-only view for the presentation layer
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def outcome(self) -> Optional[ValuationOutcome]:
        return self._outcome

    @property
    def error(self) -> Optional[str]:
        """Human-readable message of the failure that put the session in ERROR."""
        if self._exception is None:
            return None
        return str(self._exception) or self._exception.__class__.__name__

    @property
    def exception(self) -> Optional[BaseException]:
        return self._exception

    @property
    def questions(self) -> Tuple[ClarificationQuestion, ...]:
        return self._gate.questions

    @property
    def answers(self) -> Dict[str, str]:
        return self._collector.answers

    @property
    def field_errors(self) -> Dict[str, str]:
        return self._collector.field_errors(self._gate.questions)

    @property
    def initial_findings(self) -> Optional[Any]:
        return self._initial_findings

    @property
    def valuation_input(self) -> Optional[ValuationInput]:
        return self._input

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def submit(self, valuation_input: ValuationInput) -> SessionState:
        """
        Validate input and run the extraction call.

        Raises:
            InputValidationError: Input is missing or malformed; state is unchanged
            SessionStateError: Session is not collecting input
            RemoteCallError: Remote call failed after retries; session is in ERROR
            AggregationError: Returned analysis cannot be valued; session is in ERROR
        """
        self._require(SessionState.COLLECTING_INPUT, "submit")
        validate_input(valuation_input)

        self._input = valuation_input
        self._transition(SessionState.SUBMITTING)

        response = await self._call_remote(self.extraction_function, valuation_input.to_payload())
        self._route(response)
        return self._state

    def answer(self, question_id: str, category: str, text: str) -> Optional[str]:
        """
        Record the answer to one question.

        Returns:
            Field error for this question, or None when the answer is non-empty
        """
        self._require(SessionState.AWAITING_ANSWERS, "answer")
        key = answer_key(category, str(question_id))
        if key not in {q.answer_key for q in self._gate.questions}:
            raise InputValidationError("Unknown clarification question", {key: "No such question in this round"})

        self._collector.set_answer(question_id, category, text)
        self._save_progress()
        return REQUIRED_ANSWER_ERROR if not (text or "").strip() else None

    def skip_all(self) -> Dict[str, str]:
        """Answer every question with its category default; returns the synthesized answers."""
        self._require(SessionState.AWAITING_ANSWERS, "skip questions")
        defaults = self._collector.skip_all(self._gate.questions)
        self._save_progress()
        return defaults

    async def finalize(self) -> Optional[ValuationOutcome]:
        """
        Submit the answers and compute the outcome.

        Idempotent once COMPLETE: the cached outcome is returned without a
        remote call. Returns None if the service asked a further round of
        questions.

        Raises:
            ClarificationIncompleteError: Questions remain unanswered; state is unchanged
            SessionStateError: No clarification round is pending
            RemoteCallError: Remote call failed after retries; session is in ERROR
            AggregationError: Final analysis cannot be valued; session is in ERROR
        """
        if self._state is SessionState.COMPLETE:
            return self._outcome

        self._require(SessionState.AWAITING_ANSWERS, "finalize")
        if not self._collector.all_answered(self._gate.questions):
            raise ClarificationIncompleteError(self._collector.field_errors(self._gate.questions))

        payload = self._gate.build_finalization_payload(self._collector.answers)
        self._transition(SessionState.SUBMITTING_ANSWERS)

        response = await self._call_remote(self.finalization_function, payload)
        self._route(response)
        return self._outcome

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, expected: SessionState, operation: str) -> None:
        if self._state is expected:
            return
        if self._state is SessionState.ERROR:
            raise SessionStateError(f"Cannot {operation}: session failed ({self.error}); start a new session")
        if self._state.is_busy:
            raise SessionStateError(f"Cannot {operation}: a remote call is already in progress")
        raise SessionStateError(f"Cannot {operation} in state {self._state.name}")

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in VALID_TRANSITIONS[self._state]:
            error = SessionStateError(f"Invalid transition {self._state.name} -> {new_state.name}")
            self._fail(error)
            raise error
        logger.info(f"Session {self.session_id}: {self._state.name} -> {new_state.name}")
        self._state = new_state

    def _fail(self, error: BaseException) -> None:
        logger.error(f"Session {self.session_id} failed in {self._state.name}: {error}")
        self._exception = error
        self._state = SessionState.ERROR

    async def _call_remote(self, function_name: str, payload: Dict[str, Any]) -> Any:
        try:
            return await self.executor.invoke(function_name, payload)
        except Exception as e:
            self._fail(e)
            raise

    def _route(self, response: Any) -> None:
        """Send a remote response to a new clarification round or to FINALIZING."""
        try:
            result = self._gate.evaluate(response, self._input)
        except RemoteResponseError as e:
            self._fail(e)
            raise

        if isinstance(result, ClarificationRequired):
            self._transition(SessionState.AWAITING_ANSWERS)
            self._initial_findings = result.initial_findings
            self._restore_progress()
            return

        self._transition(SessionState.FINALIZING)
        try:
            outcome = self.outcome_builder.build(result.analysis)
        except AggregationError as e:
            self._fail(e)
            raise
        self._outcome = outcome
        self._transition(SessionState.COMPLETE)

    def _save_progress(self) -> None:
        if self.progress_store is None:
            return
        try:
            self.progress_store.save_progress(self.session_id, self._collector.answers)
        except ProgressStoreError as e:
            logger.warning(f"Could not save progress for session {self.session_id}: {e}")

    def _restore_progress(self) -> None:
        if self.progress_store is None:
            return
        try:
            saved = self.progress_store.load_progress(self.session_id)
        except ProgressStoreError as e:
            logger.warning(f"Could not load progress for session {self.session_id}: {e}")
            return
        self._collector.restore(saved, self._gate.questions)
