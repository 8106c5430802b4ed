"""Shared pytest fixtures for the Barcoder test suite."""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from barcoder.composition import build_services
from barcoder.config import get_settings
from barcoder.db.repository import reset_repository_state
from barcoder.server.app import create_app
from tests.utils import FakeProductDatabase


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_barcoder.db"
    monkeypatch.setenv("BARCODER_DATABASE_PATH", str(db_path))
    monkeypatch.delenv("BARCODER_API_TOKEN", raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    get_settings.cache_clear()


@pytest.fixture()
def product_db() -> FakeProductDatabase:
    return FakeProductDatabase()


@pytest.fixture()
def services(product_db):
    """Stores and product cache built the way the server builds them."""

    return build_services(transport=product_db.transport())


@pytest.fixture()
def app(services) -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app(services)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)
