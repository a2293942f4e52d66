from pathlib import Path
from typing import AsyncGenerator, List

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from finedu.api.routes import admin, health, investment, lessons, products, transactions, watchlist
from finedu.config import settings
from finedu.domain.models import Product
from finedu.domain.services.config_engine import ConfigEngine
from finedu.infrastructure.db import models  # noqa: F401  (registers tables)
from finedu.infrastructure.db.database import Base, get_db
from finedu.infrastructure.db.repositories.product_repository import ProductRepository
from finedu.main import build_market_runtime

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture()
async def db_engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def config_engine() -> ConfigEngine:
    engine = ConfigEngine(CONFIG_DIR)
    engine.load_all()
    return engine


@pytest.fixture()
async def seeded_products(session_factory, config_engine) -> List[Product]:
    """Shipped seed catalogue, committed"""
    async with session_factory() as session:
        created = await ProductRepository(session).create_many(config_engine.seed_products)
        await session.commit()
    return created


@pytest.fixture()
def product_by_name(seeded_products):
    return {p.name: p for p in seeded_products}


@pytest.fixture()
def admin_headers():
    return {"X-Admin-Key": settings.ADMIN_API_KEY}


@pytest.fixture()
def user_headers():
    return {"X-User-Id": "user-1"}


@pytest.fixture()
async def app(session_factory, config_engine) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(investment.router, prefix="/api/v1/investment", tags=["Investment"])
    app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["Transactions"])
    app.include_router(watchlist.router, prefix="/api/v1/watchlist", tags=["Watchlist"])
    app.include_router(lessons.router, prefix="/api/v1/lessons", tags=["Lessons"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])

    # One session per request, like production get_db
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    # Simulator and scheduler run on their own sessions against the test database
    scheduler = build_market_runtime(app, config_engine, session_factory)
    yield app
    scheduler.stop()
    scheduler.shutdown()


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
