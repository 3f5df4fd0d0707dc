"""Shared fixtures: every test gets a store rooted in its own temporary directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from api.app import create_app
from spendcore.storage import JSONStorage


@pytest.fixture
def storage(tmp_path: Path) -> JSONStorage:
    return JSONStorage(tmp_path / "data")


@pytest.fixture
def app(tmp_path: Path):
    application = create_app(data_dir=tmp_path / "data")
    application.config.update(TESTING=True)
    return application


@pytest.fixture
def client(app):
    return app.test_client()