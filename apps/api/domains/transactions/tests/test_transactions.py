"""Tests for the transactions router and the ledger service."""

from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.core.errors import register_error_handlers
from apps.api.deps import get_stores
from apps.api.domains.transactions.router import router
from apps.api.domains.transactions.service import LedgerService
from packages.import_engine.errors import EntryValidationError
from packages.import_engine.memory import in_memory_stores
from packages.import_engine.models import Transaction

HEADERS = {"X-Household-Id": "hh-1"}


@pytest.fixture
def stores():
    return in_memory_stores()


@pytest.fixture
def client(stores):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(router, prefix="/api/v1")
    app.dependency_overrides[get_stores] = lambda: stores
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


async def _seed(stores, household_id="hh-1"):
    for day, desc in ((5, "Woolworths"), (10, "Shell"), (20, "Netflix")):
        await stores.transactions.insert(
            Transaction(
                household_id=household_id,
                date=f"2024-01-{day:02d}",
                amount=Decimal("12.50"),
                merchant=desc,
                description=desc,
            )
        )


class TestLedgerService:
    @pytest.mark.asyncio
    async def test_manual_entry_requires_date_and_amount(self, stores):
        ledger = LedgerService(stores)

        with pytest.raises(EntryValidationError, match="Please enter a date and amount."):
            await ledger.add_manual_transaction("hh-1", date=None, amount=Decimal("5"))
        with pytest.raises(EntryValidationError):
            await ledger.add_manual_transaction("hh-1", date="2024-01-05", amount=Decimal("0"))

    @pytest.mark.asyncio
    async def test_manual_entry_uses_learned_category(self, stores):
        ledger = LedgerService(stores)
        await ledger.learner.learn("hh-1", "Shell", "", "Fuel")

        saved = await ledger.add_manual_transaction(
            "hh-1", date="2024-01-05", amount=Decimal("60"), merchant="shell"
        )

        assert saved.category == "Fuel"
        assert saved.external_id is None
        assert saved.source.value == "manual"

    @pytest.mark.asyncio
    async def test_manual_entry_without_suggestion_is_uncategorized(self, stores):
        saved = await LedgerService(stores).add_manual_transaction(
            "hh-1", date="2024-01-05", amount=Decimal("-20"), description="Refund"
        )

        assert saved.category == "Uncategorized"
        assert saved.amount == Decimal("-20")

    @pytest.mark.asyncio
    async def test_explicit_category_is_learned(self, stores):
        ledger = LedgerService(stores)
        await ledger.add_manual_transaction(
            "hh-1", date="2024-01-05", amount=Decimal("9"), merchant="Bakers Delight", category="Groceries"
        )

        assert await ledger.suggest_category("hh-1", "BAKERS DELIGHT", "") == "Groceries"

    @pytest.mark.asyncio
    async def test_category_change_is_learned(self, stores):
        await _seed(stores)
        ledger = LedgerService(stores)
        shell = (await ledger.list_transactions("hh-1"))[1]

        updated = await ledger.change_category("hh-1", shell.id, "Transport & Fuel")

        assert updated.category == "Transport & Fuel"
        assert await ledger.suggest_category("hh-1", "Shell", "") == "Transport & Fuel"

    @pytest.mark.asyncio
    async def test_delete_range_validates_bounds(self, stores):
        with pytest.raises(EntryValidationError):
            await LedgerService(stores).delete_range("hh-1", "2024-02-01", "2024-01-01")


class TestTransactionsRouter:
    @pytest.mark.asyncio
    async def test_list_in_date_order(self, client, stores):
        await _seed(stores)
        await _seed(stores, household_id="hh-2")

        response = client.get("/api/v1/transactions", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert [t["date"] for t in data["transactions"]] == ["2024-01-05", "2024-01-10", "2024-01-20"]

    @pytest.mark.asyncio
    async def test_list_date_range(self, client, stores):
        await _seed(stores)

        response = client.get(
            "/api/v1/transactions", params={"from": "2024-01-06", "to": "2024-01-20"}, headers=HEADERS
        )

        assert [t["merchant"] for t in response.json()["transactions"]] == ["Shell", "Netflix"]

    def test_add_manual_transaction(self, client):
        response = client.post(
            "/api/v1/transactions",
            json={"date": "2024-03-01", "amount": "42.10", "merchant": "Aldi", "person": "Wife"},
            headers=HEADERS,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["amount"] == 42.10
        assert body["person"] == "Wife"
        assert body["category"] == "Uncategorized"
        assert body["id"]

    def test_zero_amount_is_rejected(self, client):
        response = client.post(
            "/api/v1/transactions", json={"date": "2024-03-01", "amount": "0"}, headers=HEADERS
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter a date and amount."

    def test_suggest_after_category_edit(self, client):
        created = client.post(
            "/api/v1/transactions",
            json={"date": "2024-03-01", "amount": "70", "merchant": "Shell"},
            headers=HEADERS,
        ).json()

        patched = client.patch(
            f"/api/v1/transactions/{created['id']}", json={"category": "Fuel"}, headers=HEADERS
        )
        suggestion = client.get(
            "/api/v1/transactions/suggest", params={"merchant": "shell"}, headers=HEADERS
        )

        assert patched.json()["category"] == "Fuel"
        assert suggestion.json() == {"category": "Fuel"}

    def test_patch_description(self, client):
        created = client.post(
            "/api/v1/transactions", json={"date": "2024-03-01", "amount": "5"}, headers=HEADERS
        ).json()

        response = client.patch(
            f"/api/v1/transactions/{created['id']}", json={"description": "Parking"}, headers=HEADERS
        )

        assert response.json()["description"] == "Parking"

    def test_empty_patch(self, client):
        response = client.patch("/api/v1/transactions/any", json={}, headers=HEADERS)

        assert response.status_code == 422
        assert response.json()["detail"] == "Nothing to update"

    def test_patch_unknown_transaction(self, client):
        response = client.patch("/api/v1/transactions/missing", json={"category": "Fuel"}, headers=HEADERS)

        assert response.status_code == 404

    def test_other_household_cannot_delete(self, client):
        created = client.post(
            "/api/v1/transactions", json={"date": "2024-03-01", "amount": "5"}, headers=HEADERS
        ).json()

        response = client.delete(
            f"/api/v1/transactions/{created['id']}", headers={"X-Household-Id": "hh-2"}
        )

        assert response.status_code == 404

    def test_delete_transaction(self, client, stores):
        created = client.post(
            "/api/v1/transactions", json={"date": "2024-03-01", "amount": "5"}, headers=HEADERS
        ).json()

        response = client.delete(f"/api/v1/transactions/{created['id']}", headers=HEADERS)

        assert response.status_code == 204
        assert stores.transactions.rows == {}

    @pytest.mark.asyncio
    async def test_delete_range(self, client, stores):
        await _seed(stores)

        response = client.delete(
            "/api/v1/transactions", params={"from": "2024-01-01", "to": "2024-01-10"}, headers=HEADERS
        )

        assert response.json() == {"deleted": 2}
        remaining = await stores.transactions.list("hh-1")
        assert [t.merchant for t in remaining] == ["Netflix"]
