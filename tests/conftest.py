import sqlite3
from contextlib import contextmanager
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.core.config import Settings
from app.db.session import build_engine, create_db_and_tables
from app.main import create_app
from app.models.product import Product
from app.models.user import User


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'storefront.db'}",
        SECRET_KEY="test-secret",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.DATABASE_URL, busy_timeout=30)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_product(engine):
    def _make(name="Keyboard", price="10.00", stock=5):
        with Session(engine) as session:
            product = Product(name=name, price=Decimal(price), stock=stock)
            session.add(product)
            session.commit()
            return product.id
    return _make


@pytest.fixture
def make_user(engine):
    def _make(name="Ana", email="ana@example.com"):
        with Session(engine) as session:
            user = User(name=name, email=email, password_hash="not-a-real-hash")
            session.add(user)
            session.commit()
            return user.id
    return _make


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register_and_login(client):
    def _login(name="Ana", email="ana@example.com", password="s3cret-pass"):
        resp = client.post("/api/v1/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.text
        resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}
    return _login


@pytest.fixture
def write_locked(settings):
    """Hold the database write lock from a second connection."""
    @contextmanager
    def _hold():
        path = settings.DATABASE_URL[len("sqlite:///"):]
        conn = sqlite3.connect(path, isolation_level=None)
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield
        finally:
            # closing drops the lock and the open transaction
            conn.close()
    return _hold
