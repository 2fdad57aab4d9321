"""
PostgreSQL form store for the Routing Service.
"""

import json
from typing import Any, Dict, List, Optional

import asyncpg

from shared.errors import StoreError
from shared.logging import get_logger

from ..forms.models import FormSnapshot, Question, Rule, RuleDefinitionError, SubmissionRecord
from .base import FormStore


class PostgreSQLFormStore(FormStore):
    """Reads routing forms from PostgreSQL and records submissions."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("routing.store.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the store."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=2,
                max_size=10,
                command_timeout=30
            )
            await self._create_tables()
            self.logger.info("PostgreSQL form store started")

        except (OSError, asyncpg.PostgresError) as e:
            self.logger.error("Failed to start PostgreSQL form store", error=str(e))
            raise StoreError("postgres", str(e))

    async def stop(self):
        """Stop the store."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL form store stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS routing_forms (
                    id SERIAL PRIMARY KEY,
                    slug VARCHAR(255) NOT NULL UNIQUE,
                    title VARCHAR(255) NOT NULL,
                    description TEXT,
                    owner_name VARCHAR(255),
                    is_active BOOLEAN NOT NULL DEFAULT TRUE
                );
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS routing_form_questions (
                    id SERIAL PRIMARY KEY,
                    routing_form_id INTEGER NOT NULL REFERENCES routing_forms(id) ON DELETE CASCADE,
                    label TEXT NOT NULL,
                    type VARCHAR(20) NOT NULL,
                    options JSONB NOT NULL DEFAULT '[]',
                    is_required BOOLEAN NOT NULL DEFAULT TRUE,
                    order_index INTEGER NOT NULL DEFAULT 0
                );
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS routing_form_rules (
                    id SERIAL PRIMARY KEY,
                    routing_form_id INTEGER NOT NULL REFERENCES routing_forms(id) ON DELETE CASCADE,
                    question_id INTEGER NOT NULL,
                    operator VARCHAR(20) NOT NULL,
                    value TEXT NOT NULL,
                    action VARCHAR(30) NOT NULL,
                    target_booking_link_id VARCHAR(255),
                    target_url TEXT,
                    target_message TEXT,
                    priority INTEGER NOT NULL DEFAULT 0,
                    is_active BOOLEAN NOT NULL DEFAULT TRUE
                );
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS routing_form_submissions (
                    id SERIAL PRIMARY KEY,
                    routing_form_id INTEGER NOT NULL REFERENCES routing_forms(id) ON DELETE CASCADE,
                    answers JSONB NOT NULL,
                    routed_to VARCHAR(1024) NOT NULL,
                    routed_booking_link_id VARCHAR(255),
                    rule_id INTEGER,
                    submitter_email VARCHAR(255),
                    submitter_name VARCHAR(255),
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_rules_form ON routing_form_rules(routing_form_id);
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_questions_form ON routing_form_questions(routing_form_id);
            """)

    async def get_form(self, slug: str) -> Optional[FormSnapshot]:
        """Load a form, its questions and its rules in one read-only transaction."""
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction(isolation="repeatable_read", readonly=True):
                    form = await conn.fetchrow("""
                        SELECT * FROM routing_forms WHERE slug = $1
                    """, slug)
                    if not form:
                        return None

                    questions = await conn.fetch("""
                        SELECT * FROM routing_form_questions
                        WHERE routing_form_id = $1
                        ORDER BY order_index ASC, id ASC
                    """, form["id"])
                    rules = await conn.fetch("""
                        SELECT * FROM routing_form_rules
                        WHERE routing_form_id = $1
                    """, form["id"])

        except asyncpg.PostgresError as e:
            self.logger.error("Error loading routing form", slug=slug, error=str(e))
            raise StoreError("postgres", f"cannot load form '{slug}'")

        return self._rows_to_snapshot(form, questions, rules)

    async def record_submission(self, record: SubmissionRecord) -> None:
        """Insert a submission row."""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO routing_form_submissions (
                        routing_form_id, answers, routed_to, routed_booking_link_id,
                        rule_id, submitter_email, submitter_name, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                    record.routing_form_id, json.dumps(record.answers), record.routed_to,
                    record.routed_booking_link_id, record.rule_id, record.submitter_email,
                    record.submitter_name, record.created_at
                )
        except asyncpg.PostgresError as e:
            self.logger.error(
                "Error recording submission",
                routing_form_id=record.routing_form_id,
                error=str(e)
            )
            raise StoreError("postgres", "cannot record submission")

    def _rows_to_snapshot(self, form, question_rows, rule_rows) -> FormSnapshot:
        """Convert database rows to a FormSnapshot."""
        questions = [Question.from_record(self._question_record(row)) for row in question_rows]

        rules: List[Rule] = []
        for row in rule_rows:
            try:
                rules.append(Rule.from_record(dict(row)))
            except RuleDefinitionError as e:
                self.logger.warning(
                    "Skipping invalid rule row",
                    slug=form["slug"],
                    rule_id=e.rule_id,
                    error=str(e)
                )

        return FormSnapshot(
            id=form["id"],
            slug=form["slug"],
            title=form["title"],
            description=form["description"],
            is_active=form["is_active"],
            owner_name=form["owner_name"],
            questions=tuple(questions),
            rules=tuple(rules),
        )

    @staticmethod
    def _question_record(row) -> Dict[str, Any]:
        record = dict(row)
        # asyncpg returns JSONB as text unless a codec is registered
        if isinstance(record.get("options"), str):
            record["options"] = json.loads(record["options"])
        return record

    async def health_check(self) -> bool:
        """Check database health."""
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except (OSError, asyncpg.PostgresError):
            return False
