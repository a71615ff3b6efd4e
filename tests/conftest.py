"""Test configuration helpers and fixtures."""

import copy
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

for candidate in (SRC, ROOT):
    candidate_str = str(candidate)
    if candidate.exists() and candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)


class FakeTransport:
    """
    Stand-in for AnalysisFunctionClient.

    Each call pops the next queued item; exceptions are raised, anything else
    is returned. Calls are recorded with a deep copy of the payload.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes: List[Any] = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *outcomes: Any) -> "FakeTransport":
        self.outcomes.extend(outcomes)
        return self

    async def __call__(self, function_name: str, payload: Dict[str, Any]) -> Any:
        self.calls.append({"function": function_name, "payload": copy.deepcopy(payload)})
        if not self.outcomes:
            raise AssertionError(f"Unexpected remote call to {function_name}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return copy.deepcopy(outcome)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def single_period_analysis() -> Dict[str, Any]:
    return {
        "financial_periods": [
            {
                "period": {"start_date": "2023-01-01", "end_date": "2023-12-31"},
                "valuation_metrics": {
                    "book_value": 50000,
                    "equity_value_from_revenue": 175000,
                    "equity_value_from_ebit": 225000,
                    "equity_value_from_ebitda": 0,
                    "equity_value_from_pe": -10000,
                },
            }
        ],
        "key_findings": ["Stable margins"],
        "recommendations": ["Reduce inventory"],
    }


@pytest.fixture
def two_period_analysis() -> Dict[str, Any]:
    return {
        "financial_periods": [
            {
                "period": {"start_date": "2022-01-01", "end_date": "2022-12-31"},
                "valuation_metrics": {
                    "book_value": 40000,
                    "equity_value_from_revenue": 140000,
                    "equity_value_from_ebit": 180000,
                },
            },
            {
                "period": {"start_date": "2023-01-01", "end_date": "2023-12-31"},
                "valuation_metrics": {
                    "book_value": 50000,
                    "equity_value_from_revenue": 175000,
                    "equity_value_from_ebit": 225000,
                    "equity_value_from_ebitda": 0,
                    "weighting_method": {
                        "business_pattern": "growth",
                        "alpha": 0.3,
                        "explanation": "Revenue grew 25% per year.",
                    },
                },
            },
        ],
        "key_findings": ["Fast growth"],
    }


@pytest.fixture
def clarification_response() -> Dict[str, Any]:
    return {
        "requiresUserInput": True,
        "financialQuestions": [
            {
                "id": "1",
                "category": "owner_salary",
                "question": "What would a market-rate salary for the CEO be?",
                "identified_values": {"personnel_costs": 85000},
                "normalization_purpose": "Normalize owner's salary to market level",
                "impact": "EBIT",
                "source_location": "Income statement, personnel costs",
            },
            {
                "id": 2,
                "category": "inventory",
                "question": "Does the book value of inventory reflect its actual value?",
            },
            {
                "id": "3",
                "category": "one_time_items",
                "question": "Were there one-time items in 2023?",
                "identified_values": {"other_operating_income": 12000},
            },
        ],
        "initialFindings": {"summary": "Small trading company"},
    }
