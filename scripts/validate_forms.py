#!/usr/bin/env python3
"""
Routing form definitions validation script for the SmartScheduler Routing Layer.
This script checks a forms file (YAML or JSON) for definitions the routing
service would reject or silently skip.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

import yaml

from service_routing.app.forms.engine import find_unresolvable_rules
from service_routing.app.forms.models import Question, Rule, RuleDefinitionError


def validate_form(definition: Dict[str, Any]) -> List[str]:
    """Validate a single form definition."""
    errors = []

    for field in ("id", "slug", "title"):
        if field not in definition:
            errors.append(f"Missing required field: {field}")

    questions = []
    seen_question_ids = set()
    for record in definition.get("questions") or []:
        try:
            question = Question.from_record(record)
        except (KeyError, TypeError, ValueError) as e:
            errors.append(f"Invalid question {record.get('id')!r}: {e}")
            continue
        if question.id in seen_question_ids:
            errors.append(f"Duplicate question id: {question.id}")
        seen_question_ids.add(question.id)
        if question.has_options and not question.options:
            errors.append(f"Question {question.id} ({question.type.value}) has no options")
        questions.append(question)

    rules = []
    seen_rule_ids = set()
    for record in definition.get("rules") or []:
        try:
            rule = Rule.from_record(record)
        except RuleDefinitionError as e:
            errors.append(f"Invalid rule: {e}")
            continue
        if rule.id in seen_rule_ids:
            errors.append(f"Duplicate rule id: {rule.id}")
        seen_rule_ids.add(rule.id)
        rules.append(rule)

    for reference in find_unresolvable_rules(rules, questions):
        errors.append(f"Rule {reference.rule_id} references missing question {reference.question_id}")

    return errors


def validate_forms_file(path: Path) -> Dict[str, List[str]]:
    """Validate every form in a definitions file, keyed by slug."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        return {str(path): [f"Error reading file: {e}"]}

    forms = document.get("forms", []) if isinstance(document, dict) else document
    if not isinstance(forms, list):
        return {str(path): ["Expected a list of forms"]}

    results: Dict[str, List[str]] = {}
    for index, definition in enumerate(forms):
        slug = str(definition.get("slug", f"#{index}"))
        errors = validate_form(definition)
        if slug in results:
            errors.append("Duplicate slug")
        results[slug] = results.get(slug, []) + errors
    return results


def main(argv=None):
    """Main function to validate routing form definitions."""
    parser = argparse.ArgumentParser(description="Validate routing form definitions")
    parser.add_argument("path", help="YAML or JSON forms file")
    args = parser.parse_args(argv)

    print(f"Validating routing forms in {args.path}...")
    results = validate_forms_file(Path(args.path))

    total_errors = 0
    for slug, errors in results.items():
        if errors:
            print(f"❌ {slug}: {len(errors)} validation errors")
            for error in errors:
                print(f"   - {error}")
            total_errors += len(errors)
        else:
            print(f"✅ {slug}: form is valid")

    print(f"\nValidation complete: {total_errors} total errors")
    return 0 if total_errors == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
