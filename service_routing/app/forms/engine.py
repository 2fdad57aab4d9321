"""
Rule evaluation engine for routing forms.

Evaluation is a pure function of (answers, rules, questions): rules are
filtered, put into a total order by priority then id, and scanned until
the first one whose condition holds. No state is kept between calls.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import (
    AnswerValue, Decision, Question, Rule, RuleOperator
)

CHECKBOX_JOIN_SEPARATOR = ", "


@dataclass(frozen=True)
class UnresolvableRuleReference:
    """A rule points at a question that is not part of the form snapshot."""
    rule_id: int
    question_id: str

    code = "unresolvable_rule_reference"

    def to_dict(self):
        return {"code": self.code, "rule_id": self.rule_id, "question_id": self.question_id}


def _index_questions(questions: Iterable[Question]) -> Dict[str, Question]:
    return {question.id: question for question in questions}


def _precedence(rule: Rule):
    return (-rule.priority, rule.id)


def rank_rules(rules: Iterable[Rule], questions: Iterable[Question]) -> List[Rule]:
    """Return the rules that can take part in evaluation, in precedence order.

    Inactive rules and rules whose question is missing are dropped. Higher
    priority comes first; equal priorities fall back to the lower id.
    """
    known = _index_questions(questions)
    candidates = [
        rule for rule in rules
        if rule.is_active and rule.question_id in known
    ]
    candidates.sort(key=_precedence)
    return candidates


def find_unresolvable_rules(rules: Iterable[Rule], questions: Iterable[Question]) -> List[UnresolvableRuleReference]:
    """List rules that reference questions absent from the snapshot."""
    known = _index_questions(questions)
    return [
        UnresolvableRuleReference(rule_id=rule.id, question_id=rule.question_id)
        for rule in sorted(rules, key=lambda r: r.id)
        if rule.question_id not in known
    ]


def joined_answer(answer: AnswerValue) -> str:
    """String form of an answer used by the text-matching operators."""
    if isinstance(answer, str):
        return answer
    return CHECKBOX_JOIN_SEPARATOR.join(sorted(answer))


def _equals(question: Question, answer: AnswerValue, value: str) -> bool:
    if question.is_multi_valued:
        # Multi-select: the rule value is one of the selections
        selections = {answer} if isinstance(answer, str) else answer
        return value in selections
    return answer == value


def condition_matches(rule: Rule, question: Question, answer: Optional[AnswerValue]) -> bool:
    """Evaluate one rule's condition against the answer to its question."""
    if answer is None:
        return False

    if rule.operator == RuleOperator.EQUALS:
        return _equals(question, answer, rule.value)

    if rule.operator == RuleOperator.NOT_EQUALS:
        return not _equals(question, answer, rule.value)

    haystack = joined_answer(answer).casefold()
    needle = rule.value.casefold()

    if rule.operator == RuleOperator.CONTAINS:
        return needle in haystack

    if rule.operator == RuleOperator.STARTS_WITH:
        return haystack.startswith(needle)

    return False


def select_rule(answers: Mapping[str, AnswerValue], rules: Iterable[Rule],
                questions: Sequence[Question]) -> Optional[Rule]:
    """Return the winning rule, or None when nothing matches."""
    known = _index_questions(questions)
    for rule in rank_rules(rules, questions):
        if condition_matches(rule, known[rule.question_id], answers.get(rule.question_id)):
            return rule
    return None


def evaluate(answers: Mapping[str, AnswerValue], rules: Iterable[Rule],
             questions: Sequence[Question]) -> Decision:
    """Decide where a visitor goes.

    Returns the Decision built from the first matching rule in precedence
    order, or a no-match Decision. Never raises for stale or dangling rules.
    """
    winner = select_rule(answers, rules, questions)
    if winner is None:
        return Decision.no_match()
    return Decision.from_rule(winner)
