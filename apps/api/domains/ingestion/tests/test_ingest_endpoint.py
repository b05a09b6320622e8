"""Tests for the ingestion domain router — preview and commit flow."""

import asyncio
import io
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.core.errors import register_error_handlers
from apps.api.deps import get_stores
from apps.api.domains.ingestion.router import router
from packages.import_engine.memory import in_memory_stores
from packages.import_engine.reader import read_spreadsheet

HEADERS = {"X-Household-Id": "hh-1"}

CSV_SAMPLE = """Date,Description,Amount,Balance
31/01/2024,Woolworths Metro Sydney,-45.00,955.00
01/02/2024,Salary ACME,3000.00,3955.00
not a date,Mystery,-10.00,3945.00
02/02/2024,Shell Coles Express,-80.00,3865.00
"""

DEBIT_CREDIT_SAMPLE = """Txn Date,Narration,Debit,Credit
31/01/2024,SHELL 123,80.00,
31/01/2024,REFUND,,20.00
"""


@pytest.fixture
def stores():
    return in_memory_stores()


@pytest.fixture
def app():
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(router, prefix="/api/v1")
    return app


@pytest.fixture
def client(app, stores):
    app.dependency_overrides[get_stores] = lambda: stores
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


def _upload(content: str, name: str = "statement.csv"):
    return {"file": (name, io.BytesIO(content.encode("utf-8")), "text/csv")}


class TestPreview:
    def test_preview_guesses_mapping(self, client):
        response = client.post("/api/v1/ingest/preview", files=_upload(CSV_SAMPLE))

        assert response.status_code == 200
        data = response.json()
        assert data["headers"] == ["Date", "Description", "Amount", "Balance"]
        assert data["mapping"]["date"] == "Date"
        assert data["mapping"]["amount"] == "Amount"
        assert data["mapping"]["valid"] is True
        assert data["row_count"] == 4
        assert data["rows"][0]["Description"] == "Woolworths Metro Sydney"

    def test_preview_debit_credit(self, client):
        response = client.post("/api/v1/ingest/preview", files=_upload(DEBIT_CREDIT_SAMPLE))

        mapping = response.json()["mapping"]
        assert mapping["debit"] == "Debit"
        assert mapping["credit"] == "Credit"
        assert mapping["amount"] is None

    def test_preview_reports_unmapped_roles(self, client):
        response = client.post("/api/v1/ingest/preview", files=_upload("When,What\nyesterday,stuff\n"))

        mapping = response.json()["mapping"]
        assert mapping["valid"] is False
        assert mapping["problem"] == "Please map the Date column."

    def test_preview_does_not_need_household(self, client):
        response = client.post("/api/v1/ingest/preview", files=_upload(CSV_SAMPLE))
        assert response.status_code == 200

    def test_unsupported_file_type(self, client):
        response = client.post(
            "/api/v1/ingest/preview",
            files={"file": ("statement.pdf", io.BytesIO(b"%PDF"), "application/pdf")},
        )

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    def test_empty_file(self, client):
        response = client.post("/api/v1/ingest/preview", files=_upload(""))

        assert response.status_code == 400
        assert response.json()["detail"] == "Empty file."

    def test_header_only_file(self, client):
        response = client.post("/api/v1/ingest/preview", files=_upload("Date,Description,Amount\n"))

        assert response.status_code == 400
        assert response.json()["detail"] == "No rows found."


class TestCommit:
    def test_commit_reports_counts(self, client, stores):
        response = client.post("/api/v1/ingest/commit", files=_upload(CSV_SAMPLE), headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {
            "added": 2,
            "skipped": 2,
            "duplicates": 0,
            "rejected": 1,
            "unparseable": 1,
            "failed": 0,
        }

    def test_second_commit_adds_nothing(self, client):
        client.post("/api/v1/ingest/commit", files=_upload(CSV_SAMPLE), headers=HEADERS)
        response = client.post("/api/v1/ingest/commit", files=_upload(CSV_SAMPLE), headers=HEADERS)

        data = response.json()
        assert data["added"] == 0
        assert data["duplicates"] == 2

    def test_sign_convention_form_field(self, client):
        response = client.post(
            "/api/v1/ingest/commit",
            files=_upload(CSV_SAMPLE),
            data={"negatives_are_spend": "false"},
            headers=HEADERS,
        )

        assert response.json()["added"] == 1

    def test_household_setting_applies_by_default(self, client, stores):
        stores.settings.negatives_are_spend["hh-1"] = False

        response = client.post("/api/v1/ingest/commit", files=_upload(CSV_SAMPLE), headers=HEADERS)

        assert response.json()["added"] == 1

    def test_mapping_override(self, client):
        content = "Posted,Memo,Value\n31/01/2024,Coffee,-4.50\n"

        response = client.post(
            "/api/v1/ingest/commit",
            files=_upload(content),
            data={"date": "Posted", "description": "Memo", "amount": "Value"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["added"] == 1

    def test_unmapped_file_is_rejected(self, client, stores):
        response = client.post(
            "/api/v1/ingest/commit",
            files=_upload("When,What\nyesterday,stuff\n"),
            headers=HEADERS,
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Please map the Date column."

    def test_override_naming_missing_column(self, client):
        response = client.post(
            "/api/v1/ingest/commit",
            files=_upload(CSV_SAMPLE),
            data={"amount": "Withdrawals"},
            headers=HEADERS,
        )

        assert response.status_code == 422
        assert "Withdrawals" in response.json()["detail"]

    def test_commit_requires_household(self, client):
        response = client.post("/api/v1/ingest/commit", files=_upload(CSV_SAMPLE))

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing X-Household-Id header"

    def test_commit_debit_credit(self, client, stores):
        response = client.post(
            "/api/v1/ingest/commit", files=_upload(DEBIT_CREDIT_SAMPLE, "bank.csv"), headers=HEADERS
        )

        assert response.json()["added"] == 1
        assert response.json()["rejected"] == 1


class TestBlockingParse:
    """Spreadsheet parsing runs in a worker thread, not on the event loop."""

    @pytest.fixture
    def parse_threads(self):
        seen = []

        def recording_read(*args, **kwargs):
            try:
                asyncio.get_running_loop()
                seen.append("event_loop")
            except RuntimeError:
                seen.append("worker")
            return read_spreadsheet(*args, **kwargs)

        with patch("apps.api.domains.ingestion.service.read_spreadsheet", side_effect=recording_read):
            yield seen

    def test_preview_parses_off_the_loop(self, client, parse_threads):
        response = client.post("/api/v1/ingest/preview", files=_upload(CSV_SAMPLE))

        assert response.status_code == 200
        assert parse_threads == ["worker"]

    def test_commit_parses_off_the_loop(self, client, parse_threads):
        response = client.post("/api/v1/ingest/commit", files=_upload(CSV_SAMPLE), headers=HEADERS)

        assert response.json()["added"] == 2
        assert parse_threads == ["worker"]
