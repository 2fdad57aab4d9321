"""
Factories for routing form test data.
"""

from typing import Any, Dict, List, Optional, Sequence

from service_routing.app.forms.models import (
    FormSnapshot, Question, QuestionType, RouteToBooking, RouteToUrl, Rule,
    RuleAction, RuleOperator, ShowMessage
)


def make_question(question_id: str, question_type: QuestionType = QuestionType.TEXT,
                  options: Sequence[str] = (), required: bool = True,
                  order_index: int = 0, label: Optional[str] = None) -> Question:
    """Create a question with sensible defaults."""
    return Question(
        id=question_id,
        label=label or f"Question {question_id}",
        type=question_type,
        options=tuple(options),
        required=required,
        order_index=order_index,
    )


def make_rule(rule_id: int, question_id: str, operator: RuleOperator, value: str,
              action: RuleAction, priority: int = 0, is_active: bool = True) -> Rule:
    """Create a rule."""
    return Rule(
        id=rule_id,
        question_id=question_id,
        operator=operator,
        value=value,
        action=action,
        priority=priority,
        is_active=is_active,
    )


class TestDataFactory:
    """Factory for creating routing form test data."""

    __test__ = False

    @staticmethod
    def create_department_question() -> Question:
        return make_question("q1", QuestionType.SELECT, options=["Sales", "Support"])

    @staticmethod
    def create_department_rules() -> List[Rule]:
        return [
            make_rule(1, "q1", RuleOperator.EQUALS, "Sales", RouteToBooking("L1"), priority=10),
            make_rule(2, "q1", RuleOperator.EQUALS, "Support", RouteToBooking("L2"), priority=5),
        ]

    @staticmethod
    def create_intake_form(slug: str = "intake", is_active: bool = True) -> FormSnapshot:
        """A form exercising every question type."""
        questions = (
            make_question("q1", QuestionType.SELECT, options=["Sales", "Support"], order_index=0),
            make_question("q2", QuestionType.TEXT, order_index=1),
            make_question("q3", QuestionType.CHECKBOX, options=["Calendar", "Payments", "API"],
                          required=False, order_index=2),
            make_question("q4", QuestionType.RADIO, options=["Small", "Large"],
                          required=False, order_index=3),
        )
        rules = (
            make_rule(1, "q1", RuleOperator.EQUALS, "Sales", RouteToBooking("L1"), priority=10),
            make_rule(2, "q1", RuleOperator.EQUALS, "Support", RouteToBooking("L2"), priority=5),
            make_rule(3, "q2", RuleOperator.CONTAINS, "demo",
                      ShowMessage("We'll follow up about your demo."), priority=20),
            make_rule(4, "q3", RuleOperator.EQUALS, "API",
                      RouteToUrl("https://example.com/developers"), priority=30),
        )
        return FormSnapshot(
            id=1,
            slug=slug,
            title="Intake",
            description="Tell us what you need",
            is_active=is_active,
            owner_name="Avery Host",
            questions=questions,
            rules=rules,
        )

    @staticmethod
    def create_form_definition(slug: str = "intake") -> Dict[str, Any]:
        """A form in the definitions-file shape."""
        return {
            "id": 7,
            "slug": slug,
            "title": "Intake",
            "owner_name": "Avery Host",
            "questions": [
                {"id": 11, "label": "Department", "type": "select",
                 "options": ["Sales", "Support"], "is_required": True, "order_index": 0},
            ],
            "rules": [
                {"id": 1, "question_id": 11, "operator": "equals", "value": "Sales",
                 "action": "route_to_booking", "target_booking_link_id": "L1", "priority": 10},
                {"id": 2, "question_id": 11, "operator": "equals", "value": "Support",
                 "action": "route_to_url", "target_url": "https://example.com/help"},
            ],
        }
