# tests/conftest.py
import os

# Settings are read at import time; point them at an in-memory database.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import time
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import SQLModel, Session

from app.core.config import get_settings
from app.database import build_engine, get_session
from app.main import app
from app.models.product import Product
from app.models.user import User
from app.routers.checkout import registry
from app.services.catalog_cache import catalog_cache


def make_token(user: User) -> str:
    settings = get_settings()
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "exp": int(time.time()) + 3600,
    }
    return jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm=settings.SUPABASE_JWT_ALG)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user)}"}


@pytest.fixture
def session():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def client(session):
    def _get_session_override():
        return session

    app.dependency_overrides[get_session] = _get_session_override
    registry.reset()
    catalog_cache.invalidate()

    yield TestClient(app)

    app.dependency_overrides.clear()
    registry.reset()
    catalog_cache.invalidate()


def _add_user(session: Session, role: str, name: str) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"{name.lower()}@example.com",
        name=name,
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(session):
    return _add_user(session, "admin", "Alice")


@pytest.fixture
def cashier(session):
    return _add_user(session, "cashier", "Bob")


@pytest.fixture
def make_product(session):
    def _make(
        name: str = "Coffee",
        price: str = "10000",
        stock_quantity: int = 10,
        sku: str | None = None,
        is_active: bool = True,
        category: str | None = None,
    ) -> Product:
        product = Product(
            name=name,
            price=Decimal(price),
            stock_quantity=stock_quantity,
            sku=sku,
            is_active=is_active,
            category=category,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def cashier_headers(cashier):
    return auth_headers(cashier)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def headers_for():
    return auth_headers
