import mongomock
from fastapi.testclient import TestClient
from pymongo.errors import ConfigurationError

import database as database_module

from config import Settings, get_settings
from database import COLLECTIONS, Database
from main import create_app
from payments import PaymentService


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "database": "connected", "payments": "not configured"}


def test_health_with_payments(paid_client):
    assert paid_client.get("/health").json()["payments"] == "configured"


def test_schema(client):
    assert client.get("/schema").json()["collections"] == COLLECTIONS


def test_routes_fail_per_call_without_database():
    app = create_app(Settings(), database=Database(url=None), payments=PaymentService(None))
    with TestClient(app) as client:
        assert client.get("/").status_code == 200
        assert client.get("/health").json()["database"] == "unavailable"
        res = client.get("/foods")
        assert res.status_code == 500
        assert "Database not available" in res.json()["error"]


def test_lifespan_connects_and_closes():
    database = Database(name="canteen_test", client=mongomock.MongoClient())
    app = create_app(Settings(), database=database, payments=PaymentService(None))
    with TestClient(app) as client:
        assert database.connected
        assert client.get("/foods").json() == []
    assert not database.connected


def test_settings_from_environment(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("MONGO_URI", "mongodb://example:27017")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("REQUIRE_DB_ON_STARTUP", "true")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    monkeypatch.delenv("PAYMENT_CURRENCY", raising=False)

    settings = get_settings()
    assert settings.database_url == "mongodb://example:27017"
    assert settings.port == 8080
    assert settings.require_db_on_startup is True
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.stripe_secret_key is None
    assert settings.payment_currency == "bdt"


def test_app_starts_when_srv_lookup_fails(monkeypatch):
    def unresolvable(*args, **kwargs):
        raise ConfigurationError("The DNS query name does not exist")

    monkeypatch.setattr(database_module, "MongoClient", unresolvable)
    settings = Settings(database_url="mongodb+srv://cluster0.nonexistent-host.invalid/")
    app = create_app(settings, payments=PaymentService(None))
    with TestClient(app) as client:
        assert client.get("/").status_code == 200
        assert client.get("/health").json()["status"] == "degraded"
        assert client.get("/foods").status_code == 500


def test_database_timeout_setting(monkeypatch):
    monkeypatch.setenv("DATABASE_TIMEOUT_MS", "2000")
    assert get_settings().database_timeout_ms == 2000
    app = create_app(get_settings(), payments=PaymentService(None))
    assert app.state.database.timeout_ms == 2000
