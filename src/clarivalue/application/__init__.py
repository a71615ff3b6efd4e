"""
Application Layer

ValuationSession state machine and outcome assembly.
"""

from clarivalue.application.outcome_builder import OutcomeBuilder
from clarivalue.application.session import VALID_TRANSITIONS, SessionState, ValuationSession

__all__ = ["OutcomeBuilder", "SessionState", "VALID_TRANSITIONS", "ValuationSession"]
