"""
Routing form data models.

Questions, rules and decisions are frozen dataclasses: an evaluation reads a
snapshot and never mutates it. The pydantic models at the bottom describe
the HTTP payloads of the submission handler.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """Input kinds a routing form question can take."""
    TEXT = "text"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"


class RuleOperator(str, Enum):
    """Rule condition operators."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"


class DecisionOutcome(str, Enum):
    """Where the visitor ends up."""
    BOOKING = "booking"
    URL = "url"
    MESSAGE = "message"
    NO_MATCH = "no_match"


class RuleDefinitionError(ValueError):
    """A stored rule record does not describe a consistent action/target pair."""

    def __init__(self, rule_id: Any, message: str):
        self.rule_id = rule_id
        super().__init__(f"rule {rule_id}: {message}")


@dataclass(frozen=True)
class Question:
    """One input on a routing form."""
    id: str
    label: str
    type: QuestionType
    options: Tuple[str, ...] = ()
    required: bool = True
    order_index: int = 0

    @property
    def has_options(self) -> bool:
        return self.type in (QuestionType.SELECT, QuestionType.RADIO, QuestionType.CHECKBOX)

    @property
    def is_multi_valued(self) -> bool:
        return self.type == QuestionType.CHECKBOX

    @classmethod
    def from_record(cls, record: Mapping) -> "Question":
        """Build a question from a stored row or a definitions-file entry."""
        return cls(
            id=str(record["id"]),
            label=record.get("label", ""),
            type=QuestionType(record["type"]),
            options=tuple(str(o) for o in (record.get("options") or ())),
            required=bool(record.get("required", record.get("is_required", True))),
            order_index=int(record.get("order_index", 0) or 0),
        )


AnswerValue = Union[str, FrozenSet[str]]


class AnswerSet(Mapping):
    """Validated answers keyed by question id.

    Scalar questions map to a string, checkbox questions to a frozenset.
    Read-only once built.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping] = None):
        self._values: Dict[str, AnswerValue] = dict(values or {})

    def __getitem__(self, question_id: str) -> AnswerValue:
        return self._values[question_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AnswerSet({self._values!r})"


@dataclass(frozen=True)
class RouteToBooking:
    """Send the visitor to a booking link."""
    link_id: str

    name = "route_to_booking"


@dataclass(frozen=True)
class RouteToUrl:
    """Redirect the visitor to an external URL."""
    url: str

    name = "route_to_url"


@dataclass(frozen=True)
class ShowMessage:
    """Show the visitor a static message."""
    message: str

    name = "show_message"


RuleAction = Union[RouteToBooking, RouteToUrl, ShowMessage]

_TARGET_FIELDS = {
    RouteToBooking.name: "target_booking_link_id",
    RouteToUrl.name: "target_url",
    ShowMessage.name: "target_message",
}


def action_from_record(rule_id: Any, action: str, record: Mapping) -> RuleAction:
    """Pair an action name with exactly one populated target field."""
    if action not in _TARGET_FIELDS:
        raise RuleDefinitionError(rule_id, f"unknown action '{action}'")

    populated = [name for name in _TARGET_FIELDS.values() if record.get(name) not in (None, "")]
    expected = _TARGET_FIELDS[action]
    if populated != [expected]:
        raise RuleDefinitionError(
            rule_id,
            f"action '{action}' requires exactly {expected}, got {populated or 'none'}"
        )

    target = str(record[expected])
    if action == RouteToBooking.name:
        return RouteToBooking(link_id=target)
    if action == RouteToUrl.name:
        return RouteToUrl(url=target)
    return ShowMessage(message=target)


@dataclass(frozen=True)
class Rule:
    """One conditional routing statement."""
    id: int
    question_id: str
    operator: RuleOperator
    value: str
    action: RuleAction
    priority: int = 0
    is_active: bool = True

    @classmethod
    def from_record(cls, record: Mapping) -> "Rule":
        """Build a rule from the flat storage shape.

        Raises RuleDefinitionError when the action and target fields disagree.
        """
        rule_id = record.get("id")
        try:
            rule_id = int(rule_id)
        except (TypeError, ValueError):
            raise RuleDefinitionError(rule_id, "rule id must be an integer") from None
        if record.get("question_id") in (None, ""):
            raise RuleDefinitionError(rule_id, "missing question_id")
        try:
            operator = RuleOperator(record.get("operator"))
        except ValueError:
            raise RuleDefinitionError(rule_id, f"unknown operator {record.get('operator')!r}") from None
        try:
            priority = int(record.get("priority", 0) or 0)
        except (TypeError, ValueError):
            raise RuleDefinitionError(rule_id, f"priority must be an integer, got {record.get('priority')!r}") from None

        return cls(
            id=rule_id,
            question_id=str(record["question_id"]),
            operator=operator,
            value=str(record.get("value", "")),
            action=action_from_record(rule_id, record.get("action", ""), record),
            priority=priority,
            is_active=bool(record.get("is_active", True)),
        )


@dataclass(frozen=True)
class Decision:
    """Result of evaluating one answer set against a rule set."""
    outcome: DecisionOutcome
    detail: str = ""
    rule_id: Optional[int] = None

    @property
    def matched(self) -> bool:
        return self.outcome != DecisionOutcome.NO_MATCH

    @classmethod
    def no_match(cls) -> "Decision":
        return cls(outcome=DecisionOutcome.NO_MATCH)

    @classmethod
    def from_rule(cls, rule: Rule) -> "Decision":
        action = rule.action
        if isinstance(action, RouteToBooking):
            return cls(DecisionOutcome.BOOKING, action.link_id, rule.id)
        if isinstance(action, RouteToUrl):
            return cls(DecisionOutcome.URL, action.url, rule.id)
        return cls(DecisionOutcome.MESSAGE, action.message, rule.id)


@dataclass(frozen=True)
class FormSnapshot:
    """A routing form with its questions and rules, read at one point in time."""
    id: int
    slug: str
    title: str
    questions: Tuple[Question, ...] = ()
    rules: Tuple[Rule, ...] = ()
    description: Optional[str] = None
    is_active: bool = True
    owner_name: Optional[str] = None

    def ordered_questions(self) -> List[Question]:
        return sorted(self.questions, key=lambda q: (q.order_index, q.id))


@dataclass
class SubmissionRecord:
    """What the handler records for every evaluated submission."""
    routing_form_id: int
    answers: Dict[str, Any]
    routed_to: str
    routed_booking_link_id: Optional[str] = None
    rule_id: Optional[int] = None
    submitter_email: Optional[str] = None
    submitter_name: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SubmissionRequest(BaseModel):
    """Request model for a public form submission."""
    answers: Dict[str, Union[str, int, float, bool, List[Union[str, int, float, bool]], None]] = Field(
        ..., description="Answers keyed by question id"
    )
    email: Optional[str] = Field(None, description="Submitter email")
    name: Optional[str] = Field(None, description="Submitter name")


class PublicQuestion(BaseModel):
    """A question as rendered on the public form."""
    id: str
    label: str
    type: QuestionType
    options: List[str]
    is_required: bool
    order_index: int


class PublicFormResponse(BaseModel):
    """Response model for the public form definition."""
    id: int
    title: str
    description: Optional[str] = None
    questions: List[PublicQuestion]
    owner_name: str

    @classmethod
    def from_snapshot(cls, form: FormSnapshot) -> "PublicFormResponse":
        return cls(
            id=form.id,
            title=form.title,
            description=form.description,
            questions=[
                PublicQuestion(
                    id=q.id,
                    label=q.label,
                    type=q.type,
                    options=list(q.options),
                    is_required=q.required,
                    order_index=q.order_index,
                )
                for q in form.ordered_questions()
            ],
            owner_name=form.owner_name or "Unknown",
        )
