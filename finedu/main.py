"""
FastAPI Main Application
Wires database, configuration, market simulator and routers
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finedu.api.routes import (
    admin,
    health,
    investment,
    lessons,
    products,
    transactions,
    watchlist,
)
from finedu.config import settings
from finedu.core.logging import setup_logging
from finedu.domain.services.config_engine import ConfigEngine
from finedu.infrastructure.db.database import async_session_factory, close_db, init_db
from finedu.infrastructure.db.unit_of_work import UnitOfWork, portfolio_locks
from finedu.scheduler.scheduler import MarketScheduler
from finedu.services.catalogue import seed_catalogue
from finedu.services.market_config import MarketConfigService
from finedu.services.market_simulator import MarketSimulator
from finedu.services.portfolio_service import PortfolioService

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def build_market_runtime(app: FastAPI, config_engine: ConfigEngine, session_factory) -> MarketScheduler:
    """Attach config engine, simulator and scheduler to ``app.state``"""
    store_factory = UnitOfWork.factory(session_factory)
    portfolio_service = PortfolioService(
        store_factory=store_factory,
        locks=portfolio_locks,
        starting_balance=Decimal(str(settings.DEFAULT_STARTING_BALANCE)),
    )
    simulator = MarketSimulator(
        store_factory=store_factory,
        config_service=MarketConfigService(store_factory, config_engine.market_config),
        portfolio_service=portfolio_service,
    )
    scheduler = MarketScheduler(simulator, timezone=settings.TIMEZONE)

    app.state.config_engine = config_engine
    app.state.market_simulator = simulator
    app.state.market_scheduler = scheduler
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of all services
    """
    # ===================
    # STARTUP
    # ===================
    logger.info("=" * 60)
    logger.info("🚀 Starting FinEdu")
    logger.info("=" * 60)

    # 1. Initialize database
    logger.info("📊 Step 1/4: Initializing database...")
    await init_db()
    logger.info("✅ Database initialized")

    # 2. Load configuration
    logger.info("⚙️  Step 2/4: Loading configuration...")
    config_dir = Path(settings.CONFIG_DIR)
    if not config_dir.is_absolute():
        config_dir = Path(__file__).resolve().parent.parent / config_dir
    config_engine = ConfigEngine(config_dir)
    config_engine.load_all()
    logger.info("✅ Configuration loaded successfully")
    logger.info("   📚 Lessons: %s", config_engine.lessons.count)
    logger.info("   💹 Seed products: %s", len(config_engine.seed_products))

    # 3. Seed catalogue
    logger.info("🌱 Step 3/4: Seeding catalogue...")
    if settings.SEED_CATALOGUE_ON_STARTUP:
        created = await seed_catalogue(
            UnitOfWork.factory(async_session_factory), config_engine.seed_products
        )
        logger.info("✅ Catalogue seeded (%s new products)", created)
    else:
        logger.info("⏭️  Catalogue seeding disabled")

    # 4. Market simulator
    logger.info("📈 Step 4/4: Preparing market simulator...")
    scheduler = build_market_runtime(app, config_engine, async_session_factory)
    if settings.MARKET_SIMULATOR_AUTOSTART:
        scheduler.start(config_engine.market_config.simulation_interval_ms)
    else:
        logger.info("⏸️  Market simulator idle (start via admin API)")

    logger.info("=" * 60)
    logger.info("🎯 API Server: http://%s:%s", settings.API_HOST, settings.API_PORT)
    logger.info("=" * 60)

    yield

    # ===================
    # SHUTDOWN
    # ===================
    logger.info("🛑 Shutting down FinEdu...")
    scheduler.stop()
    scheduler.shutdown()

    logger.info("📊 Closing database connections...")
    await close_db()
    logger.info("👋 FinEdu shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="FinEdu - Financial Literacy & Investment Simulator",
    description="Daily lessons, simulated marketplace and portfolio settlement",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(investment.router, prefix="/api/v1/investment", tags=["Investment"])
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["Transactions"])
app.include_router(watchlist.router, prefix="/api/v1/watchlist", tags=["Watchlist"])
app.include_router(lessons.router, prefix="/api/v1/lessons", tags=["Lessons"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures; clients only see a generic 500"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "internal_error", "message": "An internal error occurred"}},
    )


@app.get("/")
async def root():
    return {
        "service": "FinEdu",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("finedu.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
