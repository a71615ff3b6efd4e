"""
Clarification Services

Two-phase clarification workflow: decide whether the extraction call needs
user input, then collect the answers for the finalization call.
"""

from clarivalue.domain.services.clarification.answer_collector import REQUIRED_ANSWER_ERROR, AnswerCollector
from clarivalue.domain.services.clarification.gate import (
    AnalysisReady,
    ClarificationGate,
    ClarificationRequired,
    ExtractionResult,
)
from clarivalue.domain.services.clarification.templates import (
    CATEGORY_LABELS,
    DEFAULT_SKIP_ANSWER,
    SKIP_ANSWER_TEMPLATES,
    category_label,
    default_answer_for,
)

__all__ = [
    "AnalysisReady",
    "AnswerCollector",
    "CATEGORY_LABELS",
    "ClarificationGate",
    "ClarificationRequired",
    "DEFAULT_SKIP_ANSWER",
    "ExtractionResult",
    "REQUIRED_ANSWER_ERROR",
    "SKIP_ANSWER_TEMPLATES",
    "category_label",
    "default_answer_for",
]
