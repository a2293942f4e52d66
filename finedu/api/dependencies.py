"""
API dependencies
Caller identity, admin guard and per-request service wiring
"""

import hmac
from decimal import Decimal
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.config import settings
from finedu.domain.services.config_engine import ConfigEngine
from finedu.domain.services.settlement_engine import SettlementEngine
from finedu.infrastructure.db.database import get_db
from finedu.infrastructure.db.unit_of_work import UnitOfWork, portfolio_locks
from finedu.scheduler.scheduler import MarketScheduler
from finedu.services.market_config import MarketConfigService
from finedu.services.market_simulator import MarketSimulator
from finedu.services.portfolio_service import PortfolioService


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Trusted identity header set by the upstream auth layer"""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


async def require_admin(x_admin_key: Optional[str] = Header(None)) -> None:
    if not x_admin_key or not hmac.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_settlement_engine(db: AsyncSession = Depends(get_db)) -> SettlementEngine:
    return SettlementEngine(
        store_factory=lambda: UnitOfWork(db),
        locks=portfolio_locks,
        starting_balance=Decimal(str(settings.DEFAULT_STARTING_BALANCE)),
    )


def get_portfolio_service(db: AsyncSession = Depends(get_db)) -> PortfolioService:
    return PortfolioService(
        store_factory=lambda: UnitOfWork(db),
        locks=portfolio_locks,
        starting_balance=Decimal(str(settings.DEFAULT_STARTING_BALANCE)),
        max_injection=Decimal(str(settings.MAX_BALANCE_INJECTION)),
    )


def get_config_engine(request: Request) -> ConfigEngine:
    config_engine = getattr(request.app.state, "config_engine", None)
    if config_engine is None:
        raise HTTPException(status_code=503, detail="Config not loaded")
    return config_engine


def get_market_config_service(
    config_engine: ConfigEngine = Depends(get_config_engine),
    db: AsyncSession = Depends(get_db),
) -> MarketConfigService:
    return MarketConfigService(lambda: UnitOfWork(db), config_engine.market_config)


def get_market_simulator(request: Request) -> MarketSimulator:
    simulator = getattr(request.app.state, "market_simulator", None)
    if simulator is None:
        raise HTTPException(status_code=503, detail="Market simulator not initialized")
    return simulator


def get_market_scheduler(request: Request) -> MarketScheduler:
    scheduler = getattr(request.app.state, "market_scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Market scheduler not initialized")
    return scheduler
