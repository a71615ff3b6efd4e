"""Tests for ClarificationGate response routing and round caching."""

import copy
import json

import pytest

from clarivalue.domain.exceptions import RemoteResponseError, SessionStateError
from clarivalue.domain.services.clarification import AnalysisReady, ClarificationGate, ClarificationRequired
from clarivalue.domain.services.input_validator import build_document_input, build_manual_input


@pytest.fixture
def gate():
    return ClarificationGate()


@pytest.fixture
def manual_input():
    return build_manual_input("Acme Oy", "350 000", "45 000", "120 000", "70 000", company_id="acme-1")


class TestRouting:
    def test_questions_require_user_input(self, gate, manual_input, clarification_response):
        result = gate.evaluate(clarification_response, manual_input)

        assert isinstance(result, ClarificationRequired)
        assert [q.answer_key for q in result.questions] == ["owner_salary_1", "inventory_2", "one_time_items_3"]
        assert result.initial_findings == {"summary": "Small trading company"}
        assert gate.pending is True

    def test_question_fields_are_mapped(self, gate, manual_input, clarification_response):
        result = gate.evaluate(clarification_response, manual_input)
        first = result.questions[0]

        assert first.question_text == "What would a market-rate salary for the CEO be?"
        assert first.identified_value == {"personnel_costs": 85000}
        assert first.normalization_purpose == "Normalize owner's salary to market level"
        assert first.impact == "EBIT"
        assert first.source_location == "Income statement, personnel costs"

    def test_camel_case_question_fields_are_accepted(self, gate, manual_input):
        response = {
            "requiresUserInput": True,
            "financialQuestions": [{"id": "a", "category": "real_estate", "questionText": "Market rent?"}],
        }

        result = gate.evaluate(response, manual_input)

        assert result.questions[0].question_text == "Market rent?"

    def test_financial_analysis_passes_straight_through(self, gate, manual_input, single_period_analysis):
        result = gate.evaluate({"financialAnalysis": single_period_analysis}, manual_input)

        assert isinstance(result, AnalysisReady)
        assert result.analysis == single_period_analysis
        assert gate.pending is False

    def test_bare_analysis_body_is_accepted(self, gate, manual_input, single_period_analysis):
        result = gate.evaluate(single_period_analysis, manual_input)

        assert isinstance(result, AnalysisReady)
        assert result.analysis["key_findings"] == ["Stable margins"]

    def test_requires_input_without_questions_is_treated_as_analysis(self, gate, manual_input):
        result = gate.evaluate({"requiresUserInput": True, "financialQuestions": []}, manual_input)

        assert isinstance(result, AnalysisReady)

    def test_non_object_response_is_rejected(self, gate, manual_input):
        with pytest.raises(RemoteResponseError):
            gate.evaluate(["not", "an", "object"], manual_input)

    def test_question_without_text_is_rejected(self, gate, manual_input):
        response = {"requiresUserInput": True, "financialQuestions": [{"id": "1", "category": "inventory"}]}

        with pytest.raises(RemoteResponseError):
            gate.evaluate(response, manual_input)

    def test_duplicate_question_keys_are_rejected(self, gate, manual_input):
        question = {"id": "1", "category": "inventory", "question": "Inventory value?"}
        response = {"requiresUserInput": True, "financialQuestions": [question, dict(question)]}

        with pytest.raises(RemoteResponseError):
            gate.evaluate(response, manual_input)


class TestFinalizationPayload:
    def test_payload_carries_original_input_answers_and_questions(
        self, gate, manual_input, clarification_response
    ):
        gate.evaluate(clarification_response, manual_input)

        payload = gate.build_finalization_payload({"owner_salary_1": "60000"})

        assert payload["companyName"] == "Acme Oy"
        assert payload["companyId"] == "acme-1"
        assert payload["manualFigures"] == {
            "revenue": 350000.0,
            "profit": 45000.0,
            "assets": 120000.0,
            "liabilities": 70000.0,
        }
        assert payload["answers"] == {"owner_salary_1": "60000"}
        assert json.dumps(payload["originalQuestions"], sort_keys=True) == json.dumps(
            clarification_response["financialQuestions"], sort_keys=True
        )

    def test_document_input_is_resent_as_base64(self, gate, clarification_response):
        document_input = build_document_input("Acme Oy", b"%PDF-1.7 data", "application/pdf")
        gate.evaluate(clarification_response, document_input)

        payload = gate.build_finalization_payload({})

        assert payload["fileBlob"] == "JVBERi0xLjcgZGF0YQ=="
        assert payload["mimeType"] == "application/pdf"
        assert "manualFigures" not in payload

    def test_cached_questions_survive_mutation_of_the_response(self, gate, manual_input, clarification_response):
        received = copy.deepcopy(clarification_response["financialQuestions"])
        gate.evaluate(clarification_response, manual_input)

        clarification_response["financialQuestions"][0]["question"] = "changed"
        clarification_response["financialQuestions"].pop()
        payload = gate.build_finalization_payload({})
        payload["originalQuestions"][1]["category"] = "tampered"

        assert gate.original_questions == received

    def test_payload_requires_pending_round(self, gate):
        with pytest.raises(SessionStateError):
            gate.build_finalization_payload({})
