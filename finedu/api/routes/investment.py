"""
Investment Routes
Buy / sell settlement and the caller's portfolio
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from finedu.api.dependencies import (
    get_current_user_id,
    get_portfolio_service,
    get_settlement_engine,
)
from finedu.api.errors import to_http_exception
from finedu.api.schemas import ProductResponse, TransactionResponse
from finedu.domain.errors import FinEduError
from finedu.domain.models import PortfolioSnapshot, RiskLevel
from finedu.domain.services.settlement_engine import SettlementEngine
from finedu.services.portfolio_service import PortfolioService
from finedu.utils.time import to_iso_db

logger = logging.getLogger(__name__)
router = APIRouter()


# ------------------------------------------------------------------
# Request Models
# ------------------------------------------------------------------

class BuyRequest(BaseModel):
    product_id: int
    amount: Decimal = Field(..., gt=0, description="Cash to invest")


class SellRequest(BaseModel):
    product_id: int
    units: Decimal = Field(..., gt=0, description="Units to sell (4 dp)")


class RiskProfileRequest(BaseModel):
    risk_profile: RiskLevel


# ------------------------------------------------------------------
# Response Models
# ------------------------------------------------------------------

class HoldingResponse(BaseModel):
    id: int
    product_id: int
    units: float
    average_price: float
    current_value: float
    gain: float
    gain_percent: float
    product: Optional[ProductResponse] = None


class PortfolioResponse(BaseModel):
    id: int
    user_id: str
    rdn_balance: float
    trading_balance: float
    total_value: float
    total_gain: float
    total_gain_percent: float
    total_cost: float
    risk_profile: str
    holdings: List[HoldingResponse]
    allocation: Dict[str, float]
    updated_at: Optional[str] = None


def _portfolio_response(snapshot: PortfolioSnapshot) -> PortfolioResponse:
    portfolio = snapshot.portfolio
    return PortfolioResponse(
        id=portfolio.id,
        user_id=portfolio.user_id,
        rdn_balance=float(portfolio.rdn_balance),
        trading_balance=float(portfolio.trading_balance),
        total_value=float(portfolio.total_value),
        total_gain=float(portfolio.total_gain),
        total_gain_percent=float(portfolio.total_gain_percent),
        total_cost=float(snapshot.total_cost),
        risk_profile=portfolio.risk_profile.value,
        holdings=[
            HoldingResponse(
                id=h.id,
                product_id=h.product_id,
                units=float(h.units),
                average_price=float(h.average_price),
                current_value=float(h.current_value),
                gain=float(h.gain),
                gain_percent=float(h.gain_percent),
                product=(
                    ProductResponse.from_domain(snapshot.products[h.product_id])
                    if h.product_id in snapshot.products
                    else None
                ),
            )
            for h in snapshot.holdings
        ],
        allocation={key: float(value) for key, value in snapshot.allocation.items()},
        updated_at=to_iso_db(portfolio.updated_at) if portfolio.updated_at else None,
    )


# ------------------------------------------------------------------
# SETTLEMENT
# ------------------------------------------------------------------

@router.post("/buy", response_model=TransactionResponse, status_code=201)
async def buy(
    request: BuyRequest,
    user_id: str = Depends(get_current_user_id),
    engine: SettlementEngine = Depends(get_settlement_engine),
):
    """
    Buy a product for a cash amount

    Rules:
    - Product must exist and be active
    - amount >= product minimum, amount <= cash balance
    - Units rounded down to 4 dp
    """
    try:
        result = await engine.buy(user_id, request.product_id, request.amount)
    except FinEduError as exc:
        logger.info("BUY rejected | user=%s product=%s reason=%s", user_id, request.product_id, exc.code)
        raise to_http_exception(exc)

    return TransactionResponse.from_domain(result.transaction)


@router.post("/sell", response_model=TransactionResponse, status_code=201)
async def sell(
    request: SellRequest,
    user_id: str = Depends(get_current_user_id),
    engine: SettlementEngine = Depends(get_settlement_engine),
):
    """
    Sell units of a held product at the current price

    Selling (within 0.0001 of) all units removes the holding.
    """
    try:
        result = await engine.sell(user_id, request.product_id, request.units)
    except FinEduError as exc:
        logger.info("SELL rejected | user=%s product=%s reason=%s", user_id, request.product_id, exc.code)
        raise to_http_exception(exc)

    return TransactionResponse.from_domain(result.transaction)


# ------------------------------------------------------------------
# PORTFOLIO
# ------------------------------------------------------------------

@router.get("/portfolio", response_model=PortfolioResponse)
async def get_portfolio(
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Portfolio with holdings revalued at current prices"""
    snapshot = await service.get_snapshot(user_id)
    return _portfolio_response(snapshot)


@router.patch("/portfolio", response_model=PortfolioResponse)
async def update_portfolio(
    request: RiskProfileRequest,
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        snapshot = await service.update_risk_profile(user_id, request.risk_profile)
    except FinEduError as exc:
        raise to_http_exception(exc)
    return _portfolio_response(snapshot)
