"""
Form definition stores.

A store hands the submission handler one consistent snapshot of a form
(questions and rules read together) and records evaluated submissions.
"""

from .base import FormStore
from .memory import InMemoryFormStore, load_forms_file, snapshot_from_definition
from .postgres import PostgreSQLFormStore

__all__ = [
    "FormStore", "InMemoryFormStore", "PostgreSQLFormStore",
    "load_forms_file", "snapshot_from_definition",
]
