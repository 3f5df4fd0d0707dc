from __future__ import annotations

import pytest

from spendcore.exceptions import PersistenceError
from spendcore.storage import JSONStorage


def _add(client, category, amount, purpose="test"):
    return client.post("/api/expenses", json={"category": category, "amount": amount, "purpose": purpose})


def test_add_expense_returns_created_id(client):
    response = _add(client, "food", 20, "groceries")

    assert response.status_code == 201
    body = response.get_json()
    assert body["message"] == "Expense added"
    listed = client.get("/api/expenses").get_json()
    assert [expense["id"] for expense in listed] == [body["expenseId"]]
    assert listed[0]["category"] == "food"
    assert listed[0]["amount"] == 20
    assert listed[0]["date"].endswith("Z")


def test_add_expense_missing_fields(client):
    response = client.post("/api/expenses", json={"category": "food", "amount": 5})

    assert response.status_code == 400
    assert response.get_json() == {"error": "All fields are required."}


def test_non_json_body_counts_as_missing_fields(client):
    response = client.post("/api/expenses", data="category=food", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json() == {"error": "All fields are required."}


def test_limit_exceeded_is_rejected(client):
    assert _add(client, "food", 20).status_code == 201
    assert _add(client, "food", 15).status_code == 201
    assert client.post("/api/limits", json={"category": "food", "amount": 30}).status_code == 200

    response = _add(client, "food", 10)

    assert response.status_code == 400
    assert response.get_json() == {"error": "Spending limit exceeded for food."}
    assert _add(client, "fuel", 5).status_code == 201


def test_update_and_delete_expense(client):
    expense_id = _add(client, "food", 20).get_json()["expenseId"]

    updated = client.put(f"/api/expenses/{expense_id}", json={"category": "food", "amount": 22, "purpose": "x"})
    assert updated.status_code == 200
    assert updated.get_json() == {"message": "Expense updated successfully."}
    assert client.get("/api/expenses").get_json()[0]["amount"] == 22

    deleted = client.delete(f"/api/expenses/{expense_id}")
    assert deleted.status_code == 200
    assert deleted.get_json() == {"message": "Expense deleted successfully."}
    assert client.get("/api/expenses").get_json() == []


def test_unknown_expense_is_not_found(client):
    assert client.put("/api/expenses/missing", json={"amount": 1}).get_json() == {"error": "Expense not found."}
    assert client.put("/api/expenses/missing", json={"amount": 1}).status_code == 404
    assert client.delete("/api/expenses/missing").status_code == 404


def test_limits_crud(client):
    assert client.post("/api/limits", json={"category": "food"}).status_code == 400
    response = client.post("/api/limits", json={"category": "food", "amount": 30})
    assert response.get_json() == {"message": "Limit set successfully."}

    updated = client.put("/api/limits/food", json={"amount": 45})
    assert updated.status_code == 200
    assert updated.get_json() == {"message": "Limit updated successfully."}

    limits = client.get("/api/limits").get_json()
    assert len(limits) == 1
    assert limits[0]["category"] == "food"
    assert limits[0]["amount"] == 45

    missing = client.put("/api/limits/fuel", json={"amount": 10})
    assert missing.status_code == 404
    assert missing.get_json() == {"error": "Limit not found."}

    no_amount = client.put("/api/limits/food", json={})
    assert no_amount.status_code == 400
    assert no_amount.get_json() == {"error": "All fields are required."}


def test_delete_category_removes_limit_and_expenses(client):
    client.post("/api/limits", json={"category": "food", "amount": 100})
    _add(client, "food", 20)
    _add(client, "fuel", 40)
    limit_id = client.get("/api/limits").get_json()[0]["id"]

    response = client.delete(f"/api/categories/{limit_id}")

    assert response.status_code == 200
    assert response.get_json() == {"message": "All expenses and the category limit deleted successfully!"}
    assert [expense["category"] for expense in client.get("/api/expenses").get_json()] == ["fuel"]
    assert client.get("/api/limits").get_json() == []

    again = client.delete(f"/api/categories/{limit_id}")
    assert again.status_code == 404
    assert again.get_json() == {"error": "Limit not found"}


def test_monthly_summary(client):
    _add(client, "food", 20)

    response = client.get("/api/expenses/summary?month=2&year=2024")

    assert response.status_code == 200
    body = response.get_json()
    assert body["categories"] == ["food"]
    assert len(body["summary"]) == 29
    assert list(body["summary"][0]) == ["date", "food", "total"]


def test_summary_requires_month_and_year(client):
    response = client.get("/api/expenses/summary?month=3")

    assert response.status_code == 400
    assert response.get_json() == {"error": "Month and year are required."}


@pytest.mark.parametrize(
    "method, path, kwargs, message",
    [
        ("get", "/api/expenses", {}, "Failed to fetch expenses."),
        ("put", "/api/expenses/abc", {"json": {"amount": 5}}, "Failed to update expense."),
        ("delete", "/api/expenses/abc", {}, "Failed to delete expense."),
        ("put", "/api/limits/food", {"json": {"amount": 5}}, "Failed to update limit."),
        ("post", "/api/expenses", {"json": {"category": "a", "amount": 1, "purpose": "b"}}, "Failed to add expense."),
        ("get", "/api/limits", {}, "Failed to fetch limits."),
        ("post", "/api/limits", {"json": {"category": "a", "amount": 1}}, "Failed to set limit."),
        ("get", "/api/expenses/summary?month=3&year=2024", {}, "Failed to generate expense summary."),
        ("delete", "/api/categories/abc", {}, "Server error while deleting category and expenses."),
    ],
)
def test_store_failures_are_genericised(client, monkeypatch: pytest.MonkeyPatch, method, path, kwargs, message):
    def boom(self, resource):
        raise PersistenceError(f"cannot read {resource} from /secret/path")

    monkeypatch.setattr(JSONStorage, "load", boom)

    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 500
    assert response.get_json() == {"error": message}


def test_unknown_route_answers_with_json_error(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert "error" in response.get_json()


def test_oversized_amount_is_a_validation_error(client):
    response = _add(client, "food", "1e5000")

    assert response.status_code == 400
    assert response.get_json() == {"error": "amount must be a numeric value"}
    assert client.get("/api/expenses").get_json() == []
