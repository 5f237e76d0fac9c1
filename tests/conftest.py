import os
import tempfile

# settings must be in place before solarshop.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="solarshop-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'shop.db')}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_123"
os.environ["PAYSTACK_WEBHOOK_SECRET"] = "whsec_test_456"

import pytest
from fastapi.testclient import TestClient

from solarshop.auth import hash_password
from solarshop.db import Base, SessionLocal, engine
from solarshop.models import Product, User
from solarshop.serve import app
from solarshop.sessions import create_token


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(client):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, email, name="Test User", password="password123"):
    user = User(email=email, name=name, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "jane@example.com", name="Jane")


@pytest.fixture
def other_user(db):
    return _make_user(db, "otto@example.com", name="Otto")


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@example.com", name="Admin")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_token(user)}"}


@pytest.fixture
def other_headers(other_user):
    return {"Authorization": f"Bearer {create_token(other_user)}"}


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_token(admin_user)}"}


@pytest.fixture
def products(db):
    items = [
        Product(name="Mono Panel 450W", price=1000, wattage=450, category="solar-panels",
                image_url="https://cdn.example.com/panel.jpg"),
        Product(name="Hybrid Inverter 5kVA", price=250.5, category="hybrid-inverters"),
        Product(name="Old Lead Battery", price=80, category="vrla-battery", archived=True),
    ]
    db.add_all(items)
    db.commit()
    for p in items:
        db.refresh(p)
    return items
