"""Record store for the spending tracker core services."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from .exceptions import PersistenceError

Document = Dict[str, Any]


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int
    upserted_id: Optional[str] = None


def _matches(document: Mapping[str, Any], criteria: Optional[Mapping[str, Any]]) -> bool:
    if not criteria:
        return True
    return all(key in document and document[key] == value for key, value in criteria.items())


class JSONStorage:
    """File-based document store: one JSON list per collection, crash-safe writes.

    Collections are addressed by resource name (``expenses.json``). Queries are
    exact-match filters on top-level fields. Every document carries an ``id``
    assigned by the store on insert.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path
        self._base_path.mkdir(parents=True, exist_ok=True)
        # Serialises read-modify-write cycles on the collection files.
        self._lock = threading.RLock()

    # Raw collection access ------------------------------------------------
    def load(self, resource: str) -> List[Document]:
        path = self._base_path / resource
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        return payload

    def save(self, resource: str, records: Iterable[Document]) -> None:
        path = self._base_path / resource
        temp_path: Optional[Path] = None
        try:
            # A unique temp file per write keeps concurrent writers apart, other processes included.
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self._base_path, prefix=f".{resource}.", suffix=".tmp", delete=False
            ) as handle:
                temp_path = Path(handle.name)
                json.dump(list(records), handle, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Unable to write to {path}") from exc

    # Queries --------------------------------------------------------------
    def find(self, resource: str, criteria: Optional[Mapping[str, Any]] = None) -> List[Document]:
        """Return every document matching ``criteria``, in insertion order."""
        return [doc for doc in self.load(resource) if _matches(doc, criteria)]

    def find_one(self, resource: str, criteria: Mapping[str, Any]) -> Optional[Document]:
        for doc in self.load(resource):
            if _matches(doc, criteria):
                return doc
        return None

    # Mutations ------------------------------------------------------------
    def insert_one(self, resource: str, document: Mapping[str, Any]) -> str:
        """Append a document and return its store-assigned id."""
        with self._lock:
            records = self.load(resource)
            stored = {"id": uuid4().hex, **{k: v for k, v in document.items() if k != "id"}}
            records.append(stored)
            self.save(resource, records)
        return stored["id"]

    def update_one(
        self,
        resource: str,
        criteria: Mapping[str, Any],
        changes: Mapping[str, Any],
        *,
        upsert: bool = False,
    ) -> UpdateResult:
        """Set ``changes`` on the first matching document.

        With ``upsert`` and no match, a new document built from ``criteria``
        and ``changes`` is inserted instead.
        """
        with self._lock:
            records = self.load(resource)
            for index, doc in enumerate(records):
                if not _matches(doc, criteria):
                    continue
                updated = {**doc, **{k: v for k, v in changes.items() if k != "id"}}
                if updated == doc:
                    return UpdateResult(matched_count=1, modified_count=0)
                records[index] = updated
                self.save(resource, records)
                return UpdateResult(matched_count=1, modified_count=1)

            if not upsert:
                return UpdateResult(matched_count=0, modified_count=0)

            stored = {"id": uuid4().hex, **dict(criteria), **dict(changes)}
            records.append(stored)
            self.save(resource, records)
            return UpdateResult(matched_count=0, modified_count=0, upserted_id=stored["id"])

    def delete_one(self, resource: str, criteria: Mapping[str, Any]) -> int:
        with self._lock:
            records = self.load(resource)
            for index, doc in enumerate(records):
                if _matches(doc, criteria):
                    del records[index]
                    self.save(resource, records)
                    return 1
        return 0

    def delete_many(self, resource: str, criteria: Mapping[str, Any]) -> int:
        with self._lock:
            records = self.load(resource)
            kept = [doc for doc in records if not _matches(doc, criteria)]
            removed = len(records) - len(kept)
            if removed:
                self.save(resource, kept)
        return removed

    @property
    def base_path(self) -> Path:
        return self._base_path
