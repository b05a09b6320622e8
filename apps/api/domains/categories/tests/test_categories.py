"""Tests for the categories router — CRUD, rename migration, delete guard, budgets."""

from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.core.errors import register_error_handlers
from apps.api.deps import get_stores
from apps.api.domains.categories.router import router
from packages.categorization.constants import DEFAULT_CATEGORIES
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


def _create(client, name):
    return client.post("/api/v1/categories", json={"name": name}, headers=HEADERS).json()


async def _file_under(stores, category, count):
    for day in range(1, count + 1):
        await stores.transactions.insert(
            Transaction(household_id="hh-1", date=f"2024-01-{day:02d}", amount=Decimal("3"), category=category)
        )


def test_create_and_list(client):
    created = client.post("/api/v1/categories", json={"name": "  Pets "}, headers=HEADERS)

    assert created.status_code == 201
    assert created.json()["name"] == "Pets"
    listed = client.get("/api/v1/categories", headers=HEADERS).json()["categories"]
    assert [c["name"] for c in listed] == ["Pets"]


def test_duplicate_name_conflicts(client):
    _create(client, "Pets")

    response = client.post("/api/v1/categories", json={"name": "Pets"}, headers=HEADERS)

    assert response.status_code == 409
    assert response.json()["detail"] == "Category already exists."


def test_blank_name_is_rejected(client):
    response = client.post("/api/v1/categories", json={"name": "  "}, headers=HEADERS)
    assert response.status_code == 422


def test_seed_defaults_is_repeatable(client):
    _create(client, "Groceries")

    first = client.post("/api/v1/categories/seed", headers=HEADERS).json()
    second = client.post("/api/v1/categories/seed", headers=HEADERS).json()

    assert first["added"] == len(DEFAULT_CATEGORIES) - 1
    assert second["added"] == 0
    names = [c["name"] for c in client.get("/api/v1/categories", headers=HEADERS).json()["categories"]]
    assert sorted(names) == sorted(DEFAULT_CATEGORIES)


@pytest.mark.asyncio
async def test_rename_moves_transactions_and_budget(client, stores):
    groceries = _create(client, "Groceries")
    await _file_under(stores, "Groceries", 12)
    client.put("/api/v1/budgets", json={"category": "Groceries", "amount": "600"}, headers=HEADERS)

    response = client.post(
        f"/api/v1/categories/{groceries['id']}/rename", json={"name": "Food"}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json() == {
        "category": {"id": groceries["id"], "name": "Food", "color": None, "sort_order": None},
        "old_name": "Groceries",
        "transactions_moved": 12,
        "budget_moved": True,
    }
    assert client.get("/api/v1/budgets", headers=HEADERS).json() == [{"category": "Food", "amount": 600.0}]


def test_rename_onto_existing_name(client):
    groceries = _create(client, "Groceries")
    _create(client, "Food")

    response = client.post(
        f"/api/v1/categories/{groceries['id']}/rename", json={"name": "Food"}, headers=HEADERS
    )

    assert response.status_code == 409


def test_patch_color(client):
    pets = _create(client, "Pets")

    response = client.patch(f"/api/v1/categories/{pets['id']}", json={"color": "#1a2B3c"}, headers=HEADERS)

    assert response.json()["color"] == "#1a2B3c"


def test_patch_invalid_color(client):
    pets = _create(client, "Pets")

    response = client.patch(f"/api/v1/categories/{pets['id']}", json={"color": "teal"}, headers=HEADERS)

    assert response.status_code == 422


def test_patch_name_and_color(client):
    pets = _create(client, "Pets")

    response = client.patch(
        f"/api/v1/categories/{pets['id']}", json={"name": "Pet Care", "color": "#abc"}, headers=HEADERS
    )

    assert response.json()["name"] == "Pet Care"
    assert response.json()["color"] == "#abc"


def test_empty_patch(client):
    pets = _create(client, "Pets")

    response = client.patch(f"/api/v1/categories/{pets['id']}", json={}, headers=HEADERS)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_in_use_conflicts(client, stores):
    groceries = _create(client, "Groceries")
    await _file_under(stores, "Groceries", 12)

    response = client.delete(f"/api/v1/categories/{groceries['id']}", headers=HEADERS)

    assert response.status_code == 409
    assert response.json()["detail"] == "Category 'Groceries' in use by 12 transaction(s)"


def test_delete_in_use_by_budget(client):
    groceries = _create(client, "Groceries")
    client.put("/api/v1/budgets", json={"category": "Groceries", "amount": "100"}, headers=HEADERS)

    response = client.delete(f"/api/v1/categories/{groceries['id']}", headers=HEADERS)

    assert response.status_code == 409
    assert "in use by budgets" in response.json()["detail"]


def test_delete_unused(client):
    pets = _create(client, "Pets")

    response = client.delete(f"/api/v1/categories/{pets['id']}", headers=HEADERS)

    assert response.status_code == 204
    assert client.get("/api/v1/categories", headers=HEADERS).json()["categories"] == []


def test_delete_unknown(client):
    response = client.delete("/api/v1/categories/missing", headers=HEADERS)
    assert response.status_code == 404


def test_budget_upsert_replaces_amount(client):
    client.put("/api/v1/budgets", json={"category": "Fuel", "amount": "100"}, headers=HEADERS)
    response = client.put("/api/v1/budgets", json={"category": "Fuel", "amount": "150.50"}, headers=HEADERS)

    assert response.json() == {"category": "Fuel", "amount": 150.5}
    assert len(client.get("/api/v1/budgets", headers=HEADERS).json()) == 1
