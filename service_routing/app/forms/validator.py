"""
Answer validation for routing form submissions.

Checks a raw submission against the form's questions and either builds an
AnswerSet or reports every field problem at once.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Union

from .models import AnswerSet, AnswerValue, Question, QuestionType


@dataclass(frozen=True)
class MissingRequiredAnswer:
    """Required question left blank."""
    question_id: str

    code = "missing_required_answer"

    @property
    def message(self) -> str:
        return "This question is required"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "question_id": self.question_id, "message": self.message}


@dataclass(frozen=True)
class InvalidOptionValue:
    """Submitted value is not one of the question's options."""
    question_id: str
    value: str

    code = "invalid_option_value"

    @property
    def message(self) -> str:
        return f"'{self.value}' is not an allowed option"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "question_id": self.question_id,
            "value": self.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class InvalidAnswerType:
    """Submitted value has the wrong shape, e.g. a list for a text question."""
    question_id: str
    expected: str

    code = "invalid_answer_type"

    @property
    def message(self) -> str:
        return f"Expected {self.expected}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "question_id": self.question_id,
            "expected": self.expected,
            "message": self.message,
        }


AnswerError = Union[MissingRequiredAnswer, InvalidOptionValue, InvalidAnswerType]


@dataclass(frozen=True)
class ValidationResult:
    """Either a validated AnswerSet or the list of field errors."""
    answers: Optional[AnswerSet] = None
    errors: List[AnswerError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return raw == ""
    if isinstance(raw, (list, tuple, set, frozenset)):
        return len(raw) == 0
    return False


def _as_string(raw: Any) -> Optional[str]:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float)):
        return str(raw)
    return None


def _validate_scalar(question: Question, raw: Any, errors: List[AnswerError]) -> Optional[str]:
    if isinstance(raw, (list, tuple, set, frozenset)):
        errors.append(InvalidAnswerType(question.id, "a single value"))
        return None

    value = _as_string(raw)
    if value is None:
        errors.append(InvalidAnswerType(question.id, "a single value"))
        return None

    if question.type != QuestionType.TEXT and value not in question.options:
        errors.append(InvalidOptionValue(question.id, value))
        return None

    return value


def _validate_selection(question: Question, raw: Any, errors: List[AnswerError]) -> Optional[FrozenSet[str]]:
    # A lone checkbox is commonly posted as a scalar
    items = raw if isinstance(raw, (list, tuple, set, frozenset)) else [raw]

    selected = set()
    valid = True
    for item in items:
        value = _as_string(item)
        if value is None:
            errors.append(InvalidAnswerType(question.id, "a list of option values"))
            valid = False
            continue
        if value not in question.options:
            errors.append(InvalidOptionValue(question.id, value))
            valid = False
            continue
        selected.add(value)

    return frozenset(selected) if valid else None


def validate(questions: Sequence[Question], raw_answers: Mapping[str, Any]) -> ValidationResult:
    """Validate a raw submission against the form's questions.

    Every problem is collected; the result holds an AnswerSet only when
    there are none. Answers for unknown question ids are ignored.
    """
    errors: List[AnswerError] = []
    values: Dict[str, AnswerValue] = {}
    raw_answers = raw_answers or {}

    for question in sorted(questions, key=lambda q: (q.order_index, q.id)):
        raw = raw_answers.get(question.id)

        if _is_blank(raw):
            if question.required:
                errors.append(MissingRequiredAnswer(question.id))
            elif raw is not None:
                # Submitted blanks are evaluated; only absent answers are omitted
                values[question.id] = frozenset() if question.is_multi_valued else ""
            continue

        if question.is_multi_valued:
            selection = _validate_selection(question, raw, errors)
            if selection is not None:
                values[question.id] = selection
        else:
            value = _validate_scalar(question, raw, errors)
            if value is not None:
                values[question.id] = value

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(answers=AnswerSet(values))
