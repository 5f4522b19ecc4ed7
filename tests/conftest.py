from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import mongomock
import pytest
from fastapi.testclient import TestClient

import database as database_module
from config import Settings
from database import Database
from main import create_app
from payments import PaymentService


@pytest.fixture
def db():
    database = Database(name="canteen_test", client=mongomock.MongoClient())
    database.connect()
    return database


@pytest.fixture
def clock(monkeypatch):
    """Make every createdAt stamp one second later than the previous one."""
    state = {"now": datetime(2024, 1, 1, tzinfo=timezone.utc)}

    def tick():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    monkeypatch.setattr(database_module, "utc_now", tick)
    return state


@pytest.fixture
def stripe_calls(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        n = len(calls)
        return SimpleNamespace(id=f"pi_{n}", client_secret=f"pi_{n}_secret_abc")

    monkeypatch.setattr("stripe.PaymentIntent.create", fake_create)
    return calls


def build_client(db, payments):
    app = create_app(Settings(database_name="canteen_test"), database=db, payments=payments)
    return TestClient(app)


@pytest.fixture
def client(db, clock):
    return build_client(db, PaymentService(None))


@pytest.fixture
def paid_client(db, clock, stripe_calls):
    return build_client(db, PaymentService("sk_test_123", currency="bdt"))
