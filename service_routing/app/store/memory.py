"""
In-memory form store, optionally seeded from a YAML or JSON definitions file.
"""

import threading
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional

import yaml

from shared.errors import StoreError
from shared.logging import get_logger

from ..forms.models import FormSnapshot, Question, Rule, RuleDefinitionError, SubmissionRecord
from .base import FormStore

logger = get_logger("routing.store.memory")


def snapshot_from_definition(definition: Mapping[str, Any]) -> FormSnapshot:
    """Build a form snapshot from a definitions-file entry.

    Rules whose action and target disagree are logged and left out.
    """
    questions = tuple(Question.from_record(q) for q in definition.get("questions") or [])

    rules = []
    for record in definition.get("rules") or []:
        try:
            rules.append(Rule.from_record(record))
        except RuleDefinitionError as e:
            logger.warning(
                "Skipping invalid rule definition",
                form_slug=definition.get("slug"),
                rule_id=e.rule_id,
                error=str(e)
            )

    return FormSnapshot(
        id=int(definition["id"]),
        slug=str(definition["slug"]),
        title=definition.get("title", ""),
        description=definition.get("description"),
        is_active=bool(definition.get("is_active", True)),
        owner_name=definition.get("owner_name"),
        questions=questions,
        rules=tuple(rules),
    )


def load_forms_file(path: str) -> List[FormSnapshot]:
    """Load form definitions from a YAML (or JSON) file."""
    try:
        with open(Path(path), "r", encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise StoreError("forms_file", f"cannot load {path}: {e}")

    forms = document.get("forms", []) if isinstance(document, dict) else document
    if not isinstance(forms, list):
        raise StoreError("forms_file", f"{path}: expected a list of forms")

    try:
        return [snapshot_from_definition(definition) for definition in forms]
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError("forms_file", f"{path}: invalid form definition: {e}")


class InMemoryFormStore(FormStore):
    """Keeps whole form snapshots in memory.

    Snapshots are replaced atomically, so a reader always sees either the
    previous or the new version of a form, never a mix. Only the most recent
    `submissions_limit` submissions are retained.
    """

    def __init__(self, forms: Optional[Iterable[FormSnapshot]] = None, submissions_limit: int = 1000):
        self._lock = threading.Lock()
        self._forms: Dict[str, FormSnapshot] = {}
        self._submissions: Deque[SubmissionRecord] = deque(maxlen=submissions_limit)
        for form in forms or []:
            self.put_form(form)

    @classmethod
    def from_file(cls, path: str, submissions_limit: int = 1000) -> "InMemoryFormStore":
        forms = load_forms_file(path)
        logger.info("Loaded routing forms", path=path, forms=len(forms))
        return cls(forms, submissions_limit=submissions_limit)

    def put_form(self, form: FormSnapshot) -> None:
        with self._lock:
            self._forms[form.slug] = form

    def remove_form(self, slug: str) -> bool:
        with self._lock:
            return self._forms.pop(slug, None) is not None

    async def get_form(self, slug: str) -> Optional[FormSnapshot]:
        with self._lock:
            return self._forms.get(slug)

    async def record_submission(self, record: SubmissionRecord) -> None:
        with self._lock:
            self._submissions.append(record)

    def submissions(self, routing_form_id: Optional[int] = None, limit: int = 50) -> List[SubmissionRecord]:
        """Most recent submissions first."""
        with self._lock:
            records = [
                r for r in reversed(self._submissions)
                if routing_form_id is None or r.routing_form_id == routing_form_id
            ]
        return records[:limit]
