"""
Routing service for the SmartScheduler Routing Layer.
"""

import time
from typing import Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import NotFoundError, ValidationError
from shared.logging import get_logger, set_form_context

from .forms.decision import DecisionResponse, describe_action, summarize
from .forms.engine import evaluate, find_unresolvable_rules, rank_rules
from .forms.models import (
    DecisionOutcome, FormSnapshot, PublicFormResponse, SubmissionRecord, SubmissionRequest
)
from .forms.validator import validate
from .store.base import FormStore
from .store.memory import InMemoryFormStore
from .store.postgres import PostgreSQLFormStore


def build_store(config: ServiceConfig) -> FormStore:
    """Pick the form store named by configuration."""
    if config.form_store == "postgres":
        return PostgreSQLFormStore(config.postgres_dsn)
    if config.forms_file:
        return InMemoryFormStore.from_file(config.forms_file, config.memory_submissions_limit)
    return InMemoryFormStore(submissions_limit=config.memory_submissions_limit)


class RoutingService(BaseService):
    """Routing service implementation."""

    def __init__(self, store: Optional[FormStore] = None, config: Optional[ServiceConfig] = None):
        super().__init__("routing", 8013, config=config)
        self.submission_logger = get_logger("routing.submissions")
        self.store = store or build_store(self.config)

        self._setup_routing_routes()

    async def _load_published_form(self, slug: str) -> FormSnapshot:
        set_form_context(slug)
        form = await self.store.get_form(slug)
        if form is None or not form.is_active:
            self.submission_logger.info("Routing form not found", slug=slug)
            raise NotFoundError("Routing form not found", {"slug": slug})
        return form

    def _setup_routing_routes(self):
        """Set up routing-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "routing",
                "message": "SmartScheduler Routing Layer - Routing Service",
                "version": "1.0.0",
                "capabilities": ["answer_validation", "rule_evaluation", "submissions"]
            }

        @self.app.get("/forms/{slug}", response_model=PublicFormResponse)
        async def get_public_form(slug: str):
            """Public routing form definition."""
            form = await self._load_published_form(slug)
            return PublicFormResponse.from_snapshot(form)

        @self.app.post("/forms/{slug}/submit", response_model=DecisionResponse)
        async def submit_form(slug: str, request: SubmissionRequest):
            """Validate answers and return the routing decision."""
            form = await self._load_published_form(slug)
            return await self.handle_submission(form, request)

        @self.app.get("/forms/{slug}/integrity")
        async def form_integrity(slug: str):
            """Rule references that no longer resolve, and the effective rule order."""
            form = await self._load_published_form(slug)
            unresolvable = find_unresolvable_rules(form.rules, form.questions)
            return {
                "form_id": form.id,
                "unresolvable_rules": [ref.to_dict() for ref in unresolvable],
                "rule_order": [
                    {
                        "rule_id": rule.id,
                        "priority": rule.priority,
                        "question_id": rule.question_id,
                        "condition": f"{rule.operator.value} {rule.value!r}",
                        "action": describe_action(rule.action),
                    }
                    for rule in rank_rules(form.rules, form.questions)
                ],
            }

    async def handle_submission(self, form: FormSnapshot, request: SubmissionRequest) -> DecisionResponse:
        """Run one submission through validation, evaluation and recording."""
        start_time = time.time()
        questions = form.ordered_questions()

        with self.metrics.time_operation("routing_evaluation_duration_seconds"):
            result = validate(questions, request.answers)
            if result.ok:
                decision = evaluate(result.answers, form.rules, questions)

        if not result.ok:
            for error in result.errors:
                self.metrics.increment_counter("routing_validation_failures_total", error_code=error.code)
            self.submission_logger.info(
                "Submission rejected",
                form_id=form.id,
                error_count=len(result.errors)
            )
            raise ValidationError(
                "Submission has invalid answers",
                {"errors": [error.to_dict() for error in result.errors]}
            )

        unresolvable = find_unresolvable_rules(form.rules, form.questions)
        if unresolvable:
            self.metrics.increment_counter("routing_unresolvable_rules_total", amount=len(unresolvable))
            self.submission_logger.warning(
                "Routing form has rules referencing missing questions",
                form_id=form.id,
                rule_ids=[ref.rule_id for ref in unresolvable]
            )

        self.metrics.increment_counter("routing_decisions_total", outcome=decision.outcome.value)
        self.submission_logger.info(
            "Routing decision",
            form_id=form.id,
            outcome=decision.outcome.value,
            rule_id=decision.rule_id,
            evaluation_time_ms=round((time.time() - start_time) * 1000, 3)
        )

        await self.store.record_submission(SubmissionRecord(
            routing_form_id=form.id,
            answers=dict(request.answers),
            routed_to=summarize(decision),
            routed_booking_link_id=decision.detail if decision.outcome == DecisionOutcome.BOOKING else None,
            rule_id=decision.rule_id,
            submitter_email=request.email,
            submitter_name=request.name,
        ))
        self.metrics.record_business_event("routing_submission_recorded")

        return DecisionResponse.from_decision(decision, self.config.default_no_match_message)

    async def _check_dependencies(self):
        """Check routing service dependencies."""
        healthy = await self.store.health_check()
        return {"form_store": "ok" if healthy else "error"}

    async def start(self):
        """Start routing service components."""
        await self.store.start()
        self.logger.info("Routing service started", store=type(self.store).__name__)

    async def stop(self):
        """Stop routing service components."""
        await self.store.stop()
        self.logger.info("Routing service stopped")


def create_app(store: Optional[FormStore] = None, config: Optional[ServiceConfig] = None):
    """Create routing service application."""
    service = RoutingService(store=store, config=config)
    return service.app


if __name__ == "__main__":
    service = RoutingService()
    service.run()
