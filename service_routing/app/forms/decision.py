"""
Decision formatting for the submission handler.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .models import Decision, DecisionOutcome, RuleAction, RouteToBooking, RouteToUrl, ShowMessage


def summarize(decision: Decision) -> str:
    """Compact form stored with the submission record."""
    if decision.outcome == DecisionOutcome.BOOKING:
        return f"booking_link:{decision.detail}"
    if decision.outcome == DecisionOutcome.URL:
        return f"url:{decision.detail}"
    if decision.outcome == DecisionOutcome.MESSAGE:
        return "message"
    return "no_match"


class DecisionResponse(BaseModel):
    """Response model for an evaluated submission."""
    action: str = Field(..., description="route_to_booking, route_to_url or show_message")
    matched: bool = Field(..., description="Whether a rule matched")
    booking_link_id: Optional[str] = Field(None, description="Booking link to open")
    url: Optional[str] = Field(None, description="URL to redirect to")
    message: Optional[str] = Field(None, description="Message to display")
    rule_id: Optional[int] = Field(None, description="Rule that produced the decision")

    @classmethod
    def from_decision(cls, decision: Decision, default_message: str) -> "DecisionResponse":
        """Render a decision; no match falls back to the default message."""
        if decision.outcome == DecisionOutcome.BOOKING:
            return cls(action=RouteToBooking.name, matched=True,
                       booking_link_id=decision.detail, rule_id=decision.rule_id)
        if decision.outcome == DecisionOutcome.URL:
            return cls(action=RouteToUrl.name, matched=True,
                       url=decision.detail, rule_id=decision.rule_id)
        if decision.outcome == DecisionOutcome.MESSAGE:
            return cls(action=ShowMessage.name, matched=True,
                       message=decision.detail or default_message, rule_id=decision.rule_id)
        return cls(action=ShowMessage.name, matched=False, message=default_message)


def describe_action(action: RuleAction) -> str:
    """Human readable rendering of a rule action, used by diagnostics."""
    if isinstance(action, RouteToBooking):
        return f"route to booking link {action.link_id}"
    if isinstance(action, RouteToUrl):
        return f"redirect to {action.url}"
    return f"show message \"{action.message}\""
