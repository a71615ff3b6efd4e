"""Tests for AnswerCollector and the skip-all default answers."""

import pytest

from clarivalue.domain.models.valuation import ClarificationQuestion
from clarivalue.domain.services.clarification import (
    DEFAULT_SKIP_ANSWER,
    REQUIRED_ANSWER_ERROR,
    SKIP_ANSWER_TEMPLATES,
    AnswerCollector,
    category_label,
)


def question(qid, category, text="?"):
    return ClarificationQuestion(id=qid, category=category, question_text=text)


@pytest.fixture
def questions():
    return [question("1", "owner_salary"), question("2", "inventory"), question("3", "one_time_items")]


@pytest.fixture
def collector():
    return AnswerCollector()


class TestSetAnswer:
    def test_answers_are_keyed_by_category_and_id(self, collector):
        key = collector.set_answer("1", "owner_salary", "65000")

        assert key == "owner_salary_1"
        assert collector.answers == {"owner_salary_1": "65000"}

    def test_set_answer_upserts(self, collector):
        collector.set_answer("1", "owner_salary", "65000")
        collector.set_answer("1", "owner_salary", "70000")

        assert collector.answers == {"owner_salary_1": "70000"}

    def test_answers_property_is_a_copy(self, collector):
        collector.set_answer("1", "owner_salary", "65000")
        collector.answers["owner_salary_1"] = "tampered"

        assert collector.answers["owner_salary_1"] == "65000"


class TestValidation:
    def test_all_answered_requires_every_question(self, collector, questions):
        collector.set_answer("1", "owner_salary", "65000")
        collector.set_answer("2", "inventory", "Book value is fine")

        assert collector.all_answered(questions) is False

        collector.set_answer("3", "one_time_items", "None")
        assert collector.all_answered(questions) is True

    def test_whitespace_answer_is_a_field_error(self, collector, questions):
        collector.set_answer("1", "owner_salary", "65000")
        collector.set_answer("2", "inventory", "   \n")

        errors = collector.field_errors(questions)

        assert errors == {"inventory_2": REQUIRED_ANSWER_ERROR, "one_time_items_3": REQUIRED_ANSWER_ERROR}

    def test_no_questions_means_all_answered(self, collector):
        assert collector.all_answered([]) is True


class TestSkipAll:
    def test_skip_all_synthesizes_one_default_per_question(self, collector):
        defaults = collector.skip_all([question("1", "owner_salary"), question("2", "inventory")])

        assert defaults == {
            "owner_salary_1": SKIP_ANSWER_TEMPLATES["owner_salary"],
            "inventory_2": SKIP_ANSWER_TEMPLATES["inventory"],
        }
        assert "market-rate salary" in defaults["owner_salary_1"]
        assert collector.answers == defaults

    def test_unknown_category_gets_generic_default(self, collector):
        defaults = collector.skip_all([question("9", "customer_concentration")])

        assert defaults == {"customer_concentration_9": DEFAULT_SKIP_ANSWER}

    def test_skip_all_replaces_earlier_answers(self, collector, questions):
        collector.set_answer("1", "owner_salary", "65000")

        collector.skip_all(questions)

        assert collector.answers["owner_salary_1"] == SKIP_ANSWER_TEMPLATES["owner_salary"]
        assert collector.all_answered(questions)


class TestRestore:
    def test_restore_only_known_keys_and_keeps_current_answers(self, collector, questions):
        collector.set_answer("1", "owner_salary", "70000")

        restored = collector.restore(
            {"owner_salary_1": "60000", "inventory_2": "Book value", "real_estate_7": "stale"}, questions
        )

        assert restored == 1
        assert collector.answers == {"owner_salary_1": "70000", "inventory_2": "Book value"}


def test_category_labels():
    assert category_label("owner_salary") == "Owner's salary"
    assert category_label("working_capital") == "Working capital"
