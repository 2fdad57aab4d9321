"""
Routing forms package.

Defines the question, answer, rule and decision models together with the
two pure operations the submission handler relies on:

- validator.validate: raw answers -> AnswerSet or every field error.
- engine.evaluate: AnswerSet + rules + questions -> Decision.

Both operate on immutable snapshots and hold no state, so they may be
called concurrently for any number of submissions.
"""

from .engine import evaluate, find_unresolvable_rules, rank_rules
from .models import (
    AnswerSet, Decision, DecisionOutcome, FormSnapshot, Question, QuestionType,
    RouteToBooking, RouteToUrl, Rule, RuleDefinitionError, RuleOperator, ShowMessage
)
from .validator import ValidationResult, validate

__all__ = [
    "AnswerSet", "Decision", "DecisionOutcome", "FormSnapshot", "Question",
    "QuestionType", "RouteToBooking", "RouteToUrl", "Rule", "RuleDefinitionError",
    "RuleOperator", "ShowMessage", "ValidationResult", "evaluate",
    "find_unresolvable_rules", "rank_rules", "validate",
]
