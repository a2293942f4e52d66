"""
Admin Routes
Catalogue management, user views, balance injection and market simulator control
All routes require the X-Admin-Key header
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.api.dependencies import (
    get_config_engine,
    get_market_config_service,
    get_market_scheduler,
    get_market_simulator,
    get_portfolio_service,
    require_admin,
)
from finedu.api.errors import to_http_exception
from finedu.api.schemas import ProductResponse, TransactionResponse
from finedu.domain.errors import FinEduError, NotFoundError, ProductInUseError
from finedu.domain.models import Product, ProductCategory, ProductType, RiskLevel, TransactionType
from finedu.domain.money import ZERO, money, price
from finedu.domain.services.config_engine import ConfigEngine
from finedu.domain.services.product_generator import GeneratorRequest, ProductGenerator
from finedu.infrastructure.db.database import get_db
from finedu.infrastructure.db.repositories.portfolio_repository import PortfolioRepository
from finedu.infrastructure.db.repositories.product_repository import ProductRepository
from finedu.infrastructure.db.repositories.progress_repository import LessonProgressRepository
from finedu.infrastructure.db.repositories.transaction_repository import TransactionRepository
from finedu.scheduler.scheduler import MarketScheduler
from finedu.services.market_config import MarketConfigService
from finedu.services.market_simulator import MarketSimulator
from finedu.services.portfolio_service import PortfolioService
from finedu.utils.time import to_iso_db

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])

RECENT_INJECTIONS_PER_USER = 5
RECENT_TRANSACTIONS = 5


# ------------------------------------------------------------------
# Request Models
# ------------------------------------------------------------------

class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: ProductType
    category: ProductCategory
    risk_level: RiskLevel
    expected_return: Decimal
    min_investment: Decimal = Field(..., ge=0)
    current_price: Decimal = Field(..., gt=0)
    description: str = ""
    is_active: bool = True


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[ProductType] = None
    category: Optional[ProductCategory] = None
    risk_level: Optional[RiskLevel] = None
    expected_return: Optional[Decimal] = None
    min_investment: Optional[Decimal] = Field(None, ge=0)
    current_price: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class FloatRange(BaseModel):
    min: float
    max: float


class IntRange(BaseModel):
    min: int
    max: int


class InvestmentRange(IntRange):
    is_fixed: bool = False


class GenerateRequest(BaseModel):
    count: int = 5
    return_range: FloatRange = FloatRange(min=1, max=15)
    risk_range: IntRange = IntRange(min=1, max=10)
    duration_range: IntRange = IntRange(min=30, max=365)
    investment_range: InvestmentRange = InvestmentRange(min=50, max=1000)
    price_range: FloatRange = FloatRange(min=10, max=100)
    product_types: List[ProductType] = Field(default_factory=lambda: list(ProductType))


class BalanceInjectionRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


class MarketConfigRequest(BaseModel):
    config: Dict[str, Any]


class MarketConfigValueRequest(BaseModel):
    key: str
    value: Any


class MarketControlRequest(BaseModel):
    action: Literal["start", "stop", "status"]
    interval_ms: Optional[int] = None


# ------------------------------------------------------------------
# PRODUCTS
# ------------------------------------------------------------------

@router.get("/products", response_model=List[ProductResponse])
async def list_all_products(db: AsyncSession = Depends(get_db)):
    """All products including inactive ones"""
    products = await ProductRepository(db).list_all()
    return [ProductResponse.from_domain(p) for p in products]


@router.post("/products", response_model=ProductResponse, status_code=201)
async def create_product(request: ProductCreateRequest, db: AsyncSession = Depends(get_db)):
    current_price = price(request.current_price)
    product = await ProductRepository(db).create(
        Product(
            name=request.name,
            type=request.type,
            category=request.category,
            risk_level=request.risk_level,
            expected_return=request.expected_return,
            min_investment=money(request.min_investment),
            current_price=current_price,
            initial_price=current_price,
            description=request.description,
            is_active=request.is_active,
        )
    )
    logger.info("Product created | id=%s name=%s", product.id, product.name)
    return ProductResponse.from_domain(product)


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await ProductRepository(db).get(product_id)
    if product is None:
        raise to_http_exception(NotFoundError("Product not found"))
    return ProductResponse.from_domain(product)


@router.put("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    request: ProductUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    changes = request.model_dump(exclude_unset=True, exclude_none=True)

    product = await ProductRepository(db).update(product_id, **changes)
    if product is None:
        raise to_http_exception(NotFoundError("Product not found"))

    logger.info("Product updated | id=%s fields=%s", product_id, ", ".join(sorted(changes)))
    return ProductResponse.from_domain(product)


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    """Refused while any transaction references the product"""
    repo = ProductRepository(db)
    if await repo.get(product_id) is None:
        raise to_http_exception(NotFoundError("Product not found"))

    if await TransactionRepository(db).count_for_product(product_id) > 0:
        raise to_http_exception(
            ProductInUseError("Cannot delete product with existing transactions. Deactivate it instead.")
        )

    await repo.delete(product_id)
    logger.info("Product deleted | id=%s", product_id)
    return {"success": True, "message": "Product deleted successfully"}


@router.post("/products/generate", status_code=201)
async def generate_products(request: GenerateRequest, db: AsyncSession = Depends(get_db)):
    generator_request = GeneratorRequest(
        count=request.count,
        return_range=(request.return_range.min, request.return_range.max),
        risk_range=(request.risk_range.min, request.risk_range.max),
        duration_range=(request.duration_range.min, request.duration_range.max),
        investment_range=(request.investment_range.min, request.investment_range.max),
        investment_fixed=request.investment_range.is_fixed,
        price_range=(request.price_range.min, request.price_range.max),
        product_types=tuple(request.product_types),
    )
    try:
        products = ProductGenerator().generate(generator_request)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"code": "invalid_request", "message": str(exc)})

    created = await ProductRepository(db).create_many(products)
    logger.info("Generated %s products", len(created))
    return {
        "success": True,
        "generated_count": len(created),
        "message": f"Successfully generated {len(created)} products",
        "products": [ProductResponse.from_domain(p) for p in created],
    }


# ------------------------------------------------------------------
# USERS
# ------------------------------------------------------------------

@router.post("/users/balance", status_code=201)
async def inject_balance(
    request: BalanceInjectionRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Credit cash to a user (DEPOSIT transaction)"""
    try:
        transaction, portfolio = await service.inject_balance(request.user_id, request.amount)
    except FinEduError as exc:
        raise to_http_exception(exc)

    return {
        "success": True,
        "message": f"Successfully added {float(transaction.amount):,.2f} to {request.user_id}",
        "new_balance": float(portfolio.rdn_balance),
        "transaction": TransactionResponse.from_domain(transaction),
    }


@router.get("/users")
async def list_users(db: AsyncSession = Depends(get_db)):
    """Users with balances, activity counts and their last five balance injections"""
    portfolios = await PortfolioRepository(db).list_all()
    transaction_counts = await TransactionRepository(db).count_by_user()
    progress_counts = await LessonProgressRepository(db).count_by_user()

    injections: Dict[str, List[TransactionResponse]] = {}
    for deposit in await TransactionRepository(db).list_by_type(TransactionType.DEPOSIT):
        recent = injections.setdefault(deposit.user_id, [])
        if len(recent) < RECENT_INJECTIONS_PER_USER:
            recent.append(TransactionResponse.from_domain(deposit))

    return [
        {
            "user_id": p.user_id,
            "rdn_balance": float(p.rdn_balance),
            "total_value": float(p.total_value),
            "total_gain": float(p.total_gain),
            "risk_profile": p.risk_profile.value,
            "transaction_count": transaction_counts.get(p.user_id, 0),
            "progress_count": progress_counts.get(p.user_id, 0),
            "recent_injections": injections.get(p.user_id, []),
            "created_at": to_iso_db(p.created_at) if p.created_at else None,
        }
        for p in portfolios
    ]


@router.get("/users/balance-injections")
async def list_balance_injections(db: AsyncSession = Depends(get_db)):
    """Every DEPOSIT transaction, newest first, with totals"""
    deposits = await TransactionRepository(db).list_by_type(TransactionType.DEPOSIT)
    total_injected = money(sum((d.amount for d in deposits), ZERO))

    return {
        "total_injected": float(total_injected),
        "total_users": len({d.user_id for d in deposits}),
        "count": len(deposits),
        "injections": [TransactionResponse.from_domain(d) for d in deposits],
    }


# ------------------------------------------------------------------
# STATS
# ------------------------------------------------------------------

@router.get("/stats")
async def platform_stats(
    db: AsyncSession = Depends(get_db),
    config_engine: ConfigEngine = Depends(get_config_engine),
):
    """Platform-wide counts plus the latest transactions"""
    products = ProductRepository(db)
    transactions = TransactionRepository(db)
    active_products = await products.list_active()

    return {
        "total_users": await PortfolioRepository(db).count(),
        "total_products": await products.count(),
        "active_products": len(active_products),
        "total_transactions": await transactions.count(),
        "total_lessons": config_engine.lessons.count,
        "completed_lessons": await LessonProgressRepository(db).count(),
        "recent_transactions": [
            TransactionResponse.from_domain(t)
            for t in await transactions.list_recent(RECENT_TRANSACTIONS)
        ],
    }


# ------------------------------------------------------------------
# MARKET
# ------------------------------------------------------------------

@router.get("/market/config")
async def get_market_config(service: MarketConfigService = Depends(get_market_config_service)):
    config = await service.current()
    return {"success": True, "config": config.to_dict()}


@router.post("/market/config")
async def update_market_config(
    request: MarketConfigRequest,
    service: MarketConfigService = Depends(get_market_config_service),
):
    try:
        saved = await service.update(request.config)
    except FinEduError as exc:
        raise to_http_exception(exc)
    return {"success": True, "message": "Market configuration updated successfully", "config": saved}


@router.put("/market/config")
async def update_market_config_value(
    request: MarketConfigValueRequest,
    service: MarketConfigService = Depends(get_market_config_service),
):
    try:
        value = await service.set_value(request.key, request.value)
    except FinEduError as exc:
        raise to_http_exception(exc)
    return {"success": True, "message": f"{request.key} updated successfully", "key": request.key, "value": value}


@router.post("/market/control")
async def control_market(
    request: MarketControlRequest,
    scheduler: MarketScheduler = Depends(get_market_scheduler),
    service: MarketConfigService = Depends(get_market_config_service),
):
    if request.action == "start":
        interval_ms = request.interval_ms or (await service.current()).simulation_interval_ms
        try:
            scheduler.start(interval_ms)
        except FinEduError as exc:
            raise to_http_exception(exc)
        message = "Market simulator started"
    elif request.action == "stop":
        scheduler.stop()
        message = "Market simulator stopped"
    else:
        message = "Market simulator status"

    return {"message": message, **scheduler.status()}


@router.get("/market/control")
async def market_status(scheduler: MarketScheduler = Depends(get_market_scheduler)):
    return {"message": "Market simulator status", **scheduler.status()}


@router.post("/market/simulate")
async def simulate_market(simulator: MarketSimulator = Depends(get_market_simulator)):
    """Run one tick immediately"""
    report = await simulator.tick()
    if not report.moves:
        return {"message": "No active products found", "updated": 0, "portfolios_revalued": 0}

    return {
        "message": f"Updated {report.products_updated} products",
        "updated": report.products_updated,
        "portfolios_revalued": report.portfolios_revalued,
        "products": [
            {
                "id": move.product_id,
                "old_price": float(move.old_price),
                "new_price": float(move.new_price),
                "change": float(move.change),
                "change_percent": float(move.change_percent),
            }
            for move in report.moves
        ],
    }
