"""Shared pytest fixtures for the transaction API tests."""

import os

# Settings are read at import time, so they are pinned before the app loads
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_DIR"] = ""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from fakes import FakeCollection, run
from main import app
from models.transaction import TransactionCreate
from routes import get_transaction_store
from services.transaction_store import TransactionStore


DEFAULT_DATE = datetime(2023, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def collection():
    """An empty in-memory collection per test."""
    return FakeCollection()


@pytest.fixture
def store(collection):
    return TransactionStore(collection)


@pytest.fixture
def add_transaction(store):
    """Persist a transaction directly through the store."""

    def _add(type_, amount, description="Entry", date=DEFAULT_DATE):
        record = TransactionCreate(
            type=type_,
            amount=Decimal(str(amount)),
            description=description,
            date=date,
        )
        return run(store.create(record)).unwrap()

    return _add


@pytest.fixture
def client(store):
    """Test client whose routes use the isolated store."""
    app.dependency_overrides[get_transaction_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
