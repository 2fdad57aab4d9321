"""
Integration tests for the routing form submission flow.
"""

from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from scripts.validate_forms import main as validate_forms_main, validate_forms_file
from shared.config import get_config
from service_routing.app.main import create_app

EXAMPLE_FORMS = Path(__file__).resolve().parents[2] / "config" / "forms.example.yaml"


class TestRoutingFlow:
    """End-to-end flow against the example forms file."""

    @pytest.fixture
    def client(self):
        config = get_config("routing", 8013, form_store="memory", forms_file=str(EXAMPLE_FORMS))
        with TestClient(create_app(config=config)) as client:
            yield client

    def test_render_then_submit(self, client):
        """Test loading the public form and submitting it."""
        form = client.get("/forms/contact-sales").json()
        question_ids = [q["id"] for q in form["questions"]]
        assert question_ids == ["1", "2", "3"]

        response = client.post("/forms/contact-sales/submit", json={
            "answers": {"1": "Sales", "2": "We have 40 people"},
            "email": "lead@example.com",
        })

        assert response.status_code == 200
        assert response.json()["booking_link_id"] == "sales-intro"

    @pytest.mark.parametrize("answers,expected", [
        ({"1": "Support", "2": "Calendar sync broke"}, ("route_to_booking", "support-call")),
        ({"1": "Sales", "2": "Can we see a Demo?"}, ("show_message", "We'll follow up about your demo.")),
        ({"1": "Sales", "2": "Demo please", "3": ["API"]}, ("route_to_url", "https://example.com/developers")),
    ])
    def test_priority_ordering(self, client, answers, expected):
        """Test higher priority rules win over lower ones."""
        data = client.post("/forms/contact-sales/submit", json={"answers": answers}).json()

        action, detail = expected
        assert data["action"] == action
        assert detail in (data["booking_link_id"], data["url"], data["message"])

    def test_invalid_submission(self, client):
        """Test validation failures are reported together."""
        response = client.post("/forms/contact-sales/submit", json={"answers": {"1": "Billing"}})

        assert response.status_code == 422
        assert len(response.json()["details"]["errors"]) == 2


class TestValidateFormsScript:
    """Tests for scripts/validate_forms.py."""

    def test_example_file_is_valid(self):
        assert validate_forms_file(EXAMPLE_FORMS) == {"contact-sales": []}
        assert validate_forms_main([str(EXAMPLE_FORMS)]) == 0

    def test_reports_problems(self, tmp_path):
        document = yaml.safe_load(EXAMPLE_FORMS.read_text())
        form = document["forms"][0]
        form["rules"][0]["question_id"] = 99
        form["rules"][1]["target_url"] = "https://example.com/extra"
        form["questions"][2]["options"] = []
        document["forms"].append(dict(form))
        path = tmp_path / "forms.yaml"
        path.write_text(yaml.safe_dump(document))

        results = validate_forms_file(path)
        errors = results["contact-sales"]

        assert any("references missing question 99" in e for e in errors)
        assert any("Invalid rule" in e for e in errors)
        assert any("has no options" in e for e in errors)
        assert "Duplicate slug" in errors
        assert validate_forms_main([str(path)]) == 1
