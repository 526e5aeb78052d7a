"""
Shared pytest fixtures and configuration for all tests
"""
import json
import logging
import os
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import AsyncGenerator
from unittest.mock import AsyncMock, Mock

# Settings are read at import time; point them at an in-memory database first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import structlog
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.logging import setup_logging
from storefront.database.models import Base, Category, Order, OrderItem, Product, ProductVariant, Review, User

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture(scope="session")
def test_db_url():
    """Database URL for testing"""
    return "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine(test_db_url):
    """Create async engine with a fresh schema for each test"""
    engine = create_async_engine(
        test_db_url,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def now():
    """Reference time for order windows"""
    return datetime.utcnow()


@pytest.fixture
async def catalog(db_session, now):
    """Small Sacred Treasures catalog with reviews and orders.

    Products (id: name, price, featured):
        1: amber tasbih 89.99 featured, ratings [5, 4, 5, 3]
        2: crystal tasbih 24.99 featured, ratings [4]
        3: wooden cross 29.99, out of stock, no reviews
        4: silver crucifix 89.99 featured, ratings [5, 5]
        5: rosary 34.99, ratings [3]
        6: rudraksha mala 69.99 featured, ratings [4, 5]
        7: inactive tasbih 5.00 featured

    Orders:
        alice 5 days ago {1, 2}; bob 10 days ago {1, 2, 5};
        alice 40 days ago {1, 3}; bob 3 days ago {6}. carol has none.
    """
    db_session.add_all([
        Category(id=1, name="Islamic Items", slug="islamic"),
        Category(id=2, name="Christian Items", slug="christian"),
        Category(id=3, name="Hindu Items", slug="hindu"),
        Category(id=4, name="Tasbih & Prayer Beads", slug="tasbih-prayer-beads", parent_id=1),
        Category(id=5, name="Crosses & Crucifixes", slug="crosses-crucifixes", parent_id=2),
        Category(id=6, name="Rosaries", slug="rosaries", parent_id=2),
        Category(id=7, name="Mala Beads", slug="mala-beads", parent_id=3),
    ])
    await db_session.flush()

    def product(id, name, price, category_id, tags, description, quantity=10, featured=False, active=True):
        return Product(
            id=id,
            slug=name.lower().replace(" ", "-"),
            name=name,
            description=description,
            price=price,
            sku=f"SKU-{id}",
            quantity=quantity,
            tags=tags,
            is_active=active,
            is_featured=featured,
            category_id=category_id,
            created_at=BASE_TIME + timedelta(days=id),
        )

    db_session.add_all([
        product(1, "Premium Amber Tasbih", 89.99, 4, "amber,tasbih,islamic,premium",
                "Handcrafted Baltic amber with 99 beads", quantity=25, featured=True),
        product(2, "Crystal Tasbih", 24.99, 4, "crystal,tasbih,islamic,elegant",
                "Crystal tasbih with 33 beads", featured=True),
        product(3, "Wooden Cross", 29.99, 5, "cross,wood,christian",
                "Hand-carved olive wood cross", quantity=0),
        product(4, "Silver Crucifix", 89.99, 5, "crucifix,silver,christian",
                "Sterling silver crucifix", featured=True),
        product(5, "Lourdes Rosary", 34.99, 6, "rosary,christian,prayer",
                "Rosary with glass beads"),
        product(6, "Rudraksha Mala", 69.99, 7, "rudraksha,mala,hindu,meditation",
                "108 rudraksha beads", featured=True),
        product(7, "Discontinued Tasbih", 5.00, 4, "tasbih,islamic",
                "Old stock tasbih beads", featured=True, active=False),
    ])
    db_session.add_all([
        ProductVariant(id=1, product_id=1, name="Color", value="Honey"),
        ProductVariant(id=2, product_id=1, name="Color", value="Cognac", price=94.99),
    ])
    db_session.add_all([
        User(id=1, name="Alice", email="alice@example.com"),
        User(id=2, name="Bob", email="bob@example.com"),
        User(id=3, name="Carol", email="carol@example.com"),
        User(id=4, name="Dave", email="dave@example.com"),
    ])
    await db_session.flush()

    reviews = [
        (1, 1, 5), (1, 2, 4), (1, 3, 5), (1, 4, 3),
        (2, 1, 4),
        (4, 1, 5), (4, 2, 5),
        (5, 3, 3),
        (6, 2, 4), (6, 4, 5),
        (7, 1, 5),
    ]
    for index, (product_id, user_id, rating) in enumerate(reviews, start=1):
        db_session.add(
            Review(
                id=index,
                product_id=product_id,
                user_id=user_id,
                rating=rating,
                title=f"Review {index}",
                created_at=BASE_TIME + timedelta(days=10, hours=index),
            )
        )

    orders = [
        (1, 1, 5, [1, 2]),
        (2, 2, 10, [1, 2, 5]),
        (3, 1, 40, [1, 3]),
        (4, 2, 3, [6]),
    ]
    item_id = 1
    for order_id, user_id, days_ago, product_ids in orders:
        db_session.add(Order(id=order_id, user_id=user_id, status="delivered", created_at=now - timedelta(days=days_ago)))
        await db_session.flush()
        for product_id in product_ids:
            db_session.add(OrderItem(id=item_id, order_id=order_id, product_id=product_id, quantity=1, price=10.0))
            item_id += 1

    await db_session.commit()
    # Start queries from a clean identity map so eager loads run as in a request
    db_session.expunge_all()

    return SimpleNamespace(
        amber=1, crystal=2, wooden=3, silver=4, rosary=5, rudraksha=6, inactive=7,
        tasbih_category=4, crosses_category=5, rosaries_category=6, mala_category=7,
        alice=1, bob=2, carol=3, dave=4,
    )


@pytest.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test session injected"""
    from storefront.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_db_session():
    """AsyncSession stand-in for failure paths"""
    mock = Mock(spec=AsyncSession)
    mock.execute = AsyncMock()
    mock.get = AsyncMock()
    return mock


@pytest.fixture
def json_logging(monkeypatch, capsys):
    """Switch to JSON logging on captured stdout; returns a reader of parsed lines"""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    saved_structlog = structlog.get_config()

    monkeypatch.setattr(settings, "log_format", "json")
    monkeypatch.setattr(settings, "environment", "test")
    setup_logging()
    capsys.readouterr()

    def read_lines():
        return [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]

    yield read_lines

    structlog.contextvars.clear_contextvars()
    structlog.configure(**saved_structlog)
    # Swap back only the app handlers; pytest manages its own capture handlers
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    for handler in saved_handlers:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.addHandler(handler)
    root.setLevel(saved_level)
