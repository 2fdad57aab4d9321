"""
Unit tests for routing form models and decision formatting.
"""

import dataclasses

import pytest

from service_routing.app.forms.decision import DecisionResponse, describe_action, summarize
from service_routing.app.forms.models import (
    Decision, DecisionOutcome, PublicFormResponse, Question, QuestionType,
    RouteToBooking, RouteToUrl, Rule, RuleDefinitionError, RuleOperator, ShowMessage
)
from service_routing.tests.helpers import TestDataFactory


class TestRuleFromRecord:
    """Test cases for building rules from the flat storage shape."""

    @pytest.fixture
    def record(self):
        return {
            "id": 3,
            "question_id": 11,
            "operator": "contains",
            "value": "demo",
            "action": "show_message",
            "target_booking_link_id": None,
            "target_url": None,
            "target_message": "We'll follow up.",
            "priority": 4,
            "is_active": True,
        }

    def test_builds_tagged_action(self, record):
        rule = Rule.from_record(record)

        assert rule.id == 3
        assert rule.question_id == "11"
        assert rule.operator == RuleOperator.CONTAINS
        assert rule.action == ShowMessage("We'll follow up.")
        assert rule.priority == 4

    @pytest.mark.parametrize("action,field,expected", [
        ("route_to_booking", "target_booking_link_id", RouteToBooking("42")),
        ("route_to_url", "target_url", RouteToUrl("42")),
        ("show_message", "target_message", ShowMessage("42")),
    ])
    def test_each_action(self, record, action, field, expected):
        record.update(action=action, target_message=None)
        record[field] = 42

        assert Rule.from_record(record).action == expected

    def test_missing_target_rejected(self, record):
        record.update(action="route_to_booking")

        with pytest.raises(RuleDefinitionError) as exc:
            Rule.from_record(record)
        assert exc.value.rule_id == 3

    def test_two_targets_rejected(self, record):
        record.update(target_url="https://example.com")

        with pytest.raises(RuleDefinitionError):
            Rule.from_record(record)

    def test_unknown_action_rejected(self, record):
        record.update(action="send_email")

        with pytest.raises(RuleDefinitionError):
            Rule.from_record(record)

    def test_unknown_operator_rejected(self, record):
        record.update(operator="matches_regex")

        with pytest.raises(RuleDefinitionError):
            Rule.from_record(record)

    def test_missing_question_rejected(self, record):
        record.update(question_id=None)

        with pytest.raises(RuleDefinitionError):
            Rule.from_record(record)

    @pytest.mark.parametrize("priority", ["high", [1], "1.5"])
    def test_non_integer_priority_rejected(self, record, priority):
        record["priority"] = priority

        with pytest.raises(RuleDefinitionError):
            Rule.from_record(record)

    def test_defaults(self, record):
        del record["priority"]
        del record["is_active"]

        rule = Rule.from_record(record)

        assert rule.priority == 0
        assert rule.is_active is True

    def test_rules_are_immutable(self, record):
        rule = Rule.from_record(record)

        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.priority = 100


class TestQuestion:
    """Test cases for Question."""

    def test_from_record(self):
        question = Question.from_record({
            "id": 5, "label": "Team size", "type": "radio",
            "options": ["1-10", "11+"], "is_required": False, "order_index": 2,
        })

        assert question.id == "5"
        assert question.type == QuestionType.RADIO
        assert question.options == ("1-10", "11+")
        assert question.required is False
        assert question.has_options is True
        assert question.is_multi_valued is False

    def test_text_has_no_options(self):
        question = Question.from_record({"id": "q", "type": "text"})

        assert question.options == ()
        assert question.required is True
        assert question.has_options is False


class TestDecisionFormatting:
    """Test cases for decision summaries and responses."""

    @pytest.mark.parametrize("decision,summary", [
        (Decision(DecisionOutcome.BOOKING, "L1", 1), "booking_link:L1"),
        (Decision(DecisionOutcome.URL, "https://example.com", 2), "url:https://example.com"),
        (Decision(DecisionOutcome.MESSAGE, "Hi", 3), "message"),
        (Decision.no_match(), "no_match"),
    ])
    def test_summarize(self, decision, summary):
        assert summarize(decision) == summary

    def test_booking_response(self):
        response = DecisionResponse.from_decision(Decision(DecisionOutcome.BOOKING, "L1", 1), "Thanks")

        assert response.action == "route_to_booking"
        assert response.booking_link_id == "L1"
        assert response.matched is True
        assert response.rule_id == 1
        assert response.url is None

    def test_url_response(self):
        response = DecisionResponse.from_decision(Decision(DecisionOutcome.URL, "https://x.io", 2), "Thanks")

        assert response.action == "route_to_url"
        assert response.url == "https://x.io"

    def test_no_match_uses_default_message(self):
        response = DecisionResponse.from_decision(Decision.no_match(), "Thank you for your submission.")

        assert response.action == "show_message"
        assert response.matched is False
        assert response.message == "Thank you for your submission."
        assert response.rule_id is None

    def test_describe_action(self):
        assert describe_action(RouteToBooking("L1")) == "route to booking link L1"
        assert describe_action(RouteToUrl("https://x.io")) == "redirect to https://x.io"
        assert describe_action(ShowMessage("Hi")) == 'show message "Hi"'


class TestPublicForm:
    """Test cases for the public form payload."""

    def test_questions_sorted_by_order_index(self):
        form = TestDataFactory.create_intake_form()
        form = dataclasses.replace(form, questions=tuple(reversed(form.questions)))

        payload = PublicFormResponse.from_snapshot(form)

        assert [q.id for q in payload.questions] == ["q1", "q2", "q3", "q4"]
        assert payload.owner_name == "Avery Host"
        assert payload.questions[0].options == ["Sales", "Support"]

    def test_unknown_owner(self):
        form = dataclasses.replace(TestDataFactory.create_intake_form(), owner_name=None)

        assert PublicFormResponse.from_snapshot(form).owner_name == "Unknown"
