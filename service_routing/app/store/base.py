"""
Form store interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..forms.models import FormSnapshot, SubmissionRecord


class FormStore(ABC):
    """Source of routing form snapshots and sink for submissions."""

    async def start(self):
        """Open connections. No-op by default."""

    async def stop(self):
        """Release connections. No-op by default."""

    @abstractmethod
    async def get_form(self, slug: str) -> Optional[FormSnapshot]:
        """Return the form published under slug, questions and rules read together."""

    @abstractmethod
    async def record_submission(self, record: SubmissionRecord) -> None:
        """Persist an evaluated submission."""

    async def health_check(self) -> bool:
        return True
