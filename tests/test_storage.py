from __future__ import annotations

import json

import pytest

from spendcore.exceptions import PersistenceError
from spendcore.storage import JSONStorage


def test_insert_assigns_opaque_ids(storage: JSONStorage):
    first = storage.insert_one("expenses.json", {"category": "food", "amount": 20})
    second = storage.insert_one("expenses.json", {"category": "food", "amount": 15})

    assert first != second
    assert [doc["id"] for doc in storage.find("expenses.json")] == [first, second]


def test_find_filters_on_exact_match(storage: JSONStorage):
    storage.insert_one("expenses.json", {"category": "food", "amount": 20})
    storage.insert_one("expenses.json", {"category": "Food", "amount": 5})
    storage.insert_one("expenses.json", {"category": "fuel", "amount": 40})

    matches = storage.find("expenses.json", {"category": "food"})

    assert [doc["amount"] for doc in matches] == [20]
    assert storage.find_one("expenses.json", {"category": "rent"}) is None


def test_update_one_reports_match_and_modification(storage: JSONStorage):
    doc_id = storage.insert_one("limits.json", {"category": "food", "amount": 30})

    changed = storage.update_one("limits.json", {"id": doc_id}, {"amount": 50})
    unchanged = storage.update_one("limits.json", {"id": doc_id}, {"amount": 50})
    missing = storage.update_one("limits.json", {"id": "nope"}, {"amount": 1})

    assert (changed.matched_count, changed.modified_count) == (1, 1)
    assert (unchanged.matched_count, unchanged.modified_count) == (1, 0)
    assert missing.matched_count == 0
    assert storage.find_one("limits.json", {"id": doc_id})["amount"] == 50


def test_upsert_inserts_once_then_updates(storage: JSONStorage):
    created = storage.update_one("limits.json", {"category": "food"}, {"amount": 30}, upsert=True)
    storage.update_one("limits.json", {"category": "food"}, {"amount": 45}, upsert=True)

    records = storage.find("limits.json")
    assert created.upserted_id is not None
    assert records == [{"id": created.upserted_id, "category": "food", "amount": 45}]


def test_delete_one_and_delete_many(storage: JSONStorage):
    keep = storage.insert_one("expenses.json", {"category": "fuel", "amount": 40})
    storage.insert_one("expenses.json", {"category": "food", "amount": 20})
    target = storage.insert_one("expenses.json", {"category": "food", "amount": 15})

    assert storage.delete_one("expenses.json", {"id": target}) == 1
    assert storage.delete_one("expenses.json", {"id": target}) == 0
    assert storage.delete_many("expenses.json", {"category": "food"}) == 1
    assert [doc["id"] for doc in storage.find("expenses.json")] == [keep]


def test_corrupted_collection_raises_persistence_error(storage: JSONStorage):
    (storage.base_path / "expenses.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        storage.find("expenses.json")


def test_non_list_collection_is_rejected(storage: JSONStorage):
    (storage.base_path / "limits.json").write_text(json.dumps({"food": 30}), encoding="utf-8")

    with pytest.raises(PersistenceError):
        storage.find_one("limits.json", {"category": "food"})


def test_writes_leave_no_temp_files_behind(tmp_path):
    first = JSONStorage(tmp_path)
    second = JSONStorage(tmp_path)

    first.insert_one("expenses.json", {"category": "food", "amount": 20})
    second.insert_one("expenses.json", {"category": "fuel", "amount": 40})

    assert sorted(path.name for path in tmp_path.iterdir()) == ["expenses.json"]
    assert [doc["category"] for doc in first.find("expenses.json")] == ["food", "fuel"]


def test_failed_write_keeps_previous_contents(storage: JSONStorage):
    storage.insert_one("expenses.json", {"category": "food", "amount": 20})

    with pytest.raises(PersistenceError):
        storage.save("expenses.json", [{"category": "food", "amount": object()}])

    assert [doc["amount"] for doc in storage.find("expenses.json")] == [20]
    assert sorted(path.name for path in storage.base_path.iterdir()) == ["expenses.json"]
