"""
Routing Service package for the SmartScheduler Routing Layer.

This package turns a visitor's answers to a routing form into a single
routing decision. It provides:

- app.main: public API surface for form definitions and submissions.
- app.forms: question/rule models, answer validation and rule evaluation.
- app.store: form definition stores (in-memory and PostgreSQL).

Guidelines:
- The service is stateless; form definitions come from the store.
- Validation and evaluation are pure; all I/O stays in the handler/store.
- Keep evaluation deterministic and observable (metrics + logs).
"""
