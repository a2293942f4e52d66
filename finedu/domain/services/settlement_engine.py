"""
SETTLEMENT ENGINE
Apply buy/sell orders to cash balance, holding ledger and transaction log

RESPONSIBILITIES:
- Validate orders (active product, minimum, balance, units held)
- Weighted-average cost basis on buys
- Proceeds at current price on sells
- Append one COMPLETED transaction per settlement
- Re-aggregate the portfolio after every holding mutation

RULES:
✅ One settlement per portfolio at a time (keyed lock)
✅ All writes of a settlement commit or roll back together
✅ Average cost only moves on buys
✅ Uses the price visible when the product is read (no quoting step)
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import AsyncContextManager, Callable, Optional, Protocol

from finedu.domain.errors import (
    BelowMinimumError,
    InsufficientBalanceError,
    InsufficientUnitsError,
    InvalidOrderError,
    NotFoundError,
    ProductInactiveError,
)
from finedu.domain.models import (
    Holding,
    Portfolio,
    PortfolioSnapshot,
    Product,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from finedu.domain.money import (
    UNIT_TOLERANCE,
    ZERO,
    format_rupiah,
    money,
    price as quantize_price,
    units as quantize_units,
    units_floor,
)
from finedu.domain.services.portfolio_aggregator import PortfolioAggregator, value_position

logger = logging.getLogger(__name__)


class SettlementStore(Protocol):
    """
    Transactional view of the persistence store used by a settlement.
    Entering commits on clean exit and rolls back on any exception.
    """
    products: object
    portfolios: object
    holdings: object
    transactions: object

    async def __aenter__(self) -> "SettlementStore": ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...


class LockRegistry(Protocol):
    def hold(self, key: str) -> AsyncContextManager[None]: ...


@dataclass(frozen=True)
class SettlementPlan:
    """Post-settlement state computed before anything is written."""
    portfolio: Portfolio
    holding: Optional[Holding]
    transaction: Transaction


@dataclass(frozen=True)
class SettlementResult:
    transaction: Transaction
    portfolio: Portfolio
    holding: Optional[Holding]


def plan_buy(
    portfolio: Portfolio,
    product: Product,
    holding: Optional[Holding],
    amount: Decimal,
) -> SettlementPlan:
    """
    Compute the outcome of buying ``amount`` worth of ``product``

    Raises:
        ProductInactiveError, BelowMinimumError, InsufficientBalanceError
    """
    try:
        amount = money(amount)
    except InvalidOperation:
        # too many digits to hold at 2 dp, far beyond any balance
        raise InsufficientBalanceError(
            f"Insufficient balance: have {format_rupiah(portfolio.rdn_balance)}"
        ) from None
    if amount <= ZERO:
        raise InvalidOrderError("Amount must be greater than zero")
    if not product.is_active:
        raise ProductInactiveError("Product is not active")
    if amount < product.min_investment:
        raise BelowMinimumError(
            f"Minimum investment is {format_rupiah(product.min_investment)}"
        )
    if amount > portfolio.rdn_balance:
        raise InsufficientBalanceError(
            f"Insufficient balance: need {format_rupiah(amount)}, "
            f"have {format_rupiah(portfolio.rdn_balance)}"
        )

    current_price = product.current_price
    bought_units = units_floor(amount / current_price)
    if bought_units <= ZERO:
        raise BelowMinimumError(
            f"{format_rupiah(amount)} does not buy a single 0.0001 unit at {current_price}"
        )

    if holding is not None:
        new_units = holding.units + bought_units
        new_average = quantize_price(
            (holding.average_price * holding.units + current_price * bought_units) / new_units
        )
        base = replace(holding, units=new_units, average_price=new_average)
    else:
        base = Holding(
            portfolio_id=portfolio.id,
            product_id=product.id,
            units=bought_units,
            average_price=current_price,
            current_value=ZERO,
            gain=ZERO,
            gain_percent=ZERO,
        )

    current_value, gain, gain_percent = value_position(
        base.units, base.average_price, current_price
    )
    new_holding = replace(base, current_value=current_value, gain=gain, gain_percent=gain_percent)

    return SettlementPlan(
        portfolio=replace(portfolio, rdn_balance=money(portfolio.rdn_balance - amount)),
        holding=new_holding,
        transaction=Transaction(
            user_id=portfolio.user_id,
            product_id=product.id,
            type=TransactionType.BUY,
            units=bought_units,
            price=current_price,
            amount=amount,
            total_value=amount,
            status=TransactionStatus.COMPLETED,
        ),
    )


def plan_sell(
    portfolio: Portfolio,
    product: Product,
    holding: Holding,
    requested_units: Decimal,
) -> SettlementPlan:
    """
    Compute the outcome of selling ``requested_units`` of a holding

    Requests within one 4-dp quantum of the held units sell the whole
    holding, which is then removed (plan.holding is None).

    Raises:
        InsufficientUnitsError
    """
    try:
        requested = quantize_units(requested_units)
    except InvalidOperation:
        raise InsufficientUnitsError(
            f"You can only sell up to {holding.units:.4f} units"
        ) from None
    if requested <= ZERO:
        raise InvalidOrderError("Units must be greater than zero")
    if requested > holding.units + UNIT_TOLERANCE:
        raise InsufficientUnitsError(
            f"You can only sell up to {holding.units:.4f} units"
        )

    sell_all = abs(holding.units - requested) <= UNIT_TOLERANCE
    sold_units = holding.units if sell_all else requested
    current_price = product.current_price
    proceeds = money(sold_units * current_price)

    remaining: Optional[Holding] = None
    if not sell_all:
        left = holding.units - sold_units
        current_value, gain, gain_percent = value_position(
            left, holding.average_price, current_price
        )
        remaining = replace(
            holding,
            units=left,
            current_value=current_value,
            gain=gain,
            gain_percent=gain_percent,
        )

    return SettlementPlan(
        portfolio=replace(portfolio, rdn_balance=money(portfolio.rdn_balance + proceeds)),
        holding=remaining,
        transaction=Transaction(
            user_id=portfolio.user_id,
            product_id=product.id,
            type=TransactionType.SELL,
            units=sold_units,
            price=current_price,
            amount=proceeds,
            total_value=proceeds,
            status=TransactionStatus.COMPLETED,
        ),
    )


class SettlementEngine:
    """
    Settlement Engine
    Orchestrates plan -> write -> re-aggregate inside one store transaction
    """

    def __init__(
        self,
        store_factory: Callable[[], SettlementStore],
        locks: LockRegistry,
        starting_balance: Decimal,
        aggregator: Optional[PortfolioAggregator] = None,
    ):
        """
        Initialize settlement engine

        Args:
            store_factory: Returns a fresh transactional store (unit of work)
            locks: Per-portfolio lock registry
            starting_balance: Cash given to lazily created portfolios
            aggregator: Portfolio aggregator (default instance if omitted)
        """
        self._store_factory = store_factory
        self._locks = locks
        self._starting_balance = money(starting_balance)
        self._aggregator = aggregator or PortfolioAggregator()

    async def buy(self, user_id: str, product_id: int, amount: Decimal) -> SettlementResult:
        async with self._locks.hold(user_id):
            async with self._store_factory() as store:
                product = await store.products.get(product_id)
                if product is None:
                    raise NotFoundError("Product not found")

                portfolio = await store.portfolios.get_or_create(
                    user_id, self._starting_balance, for_update=True
                )
                holding = await store.holdings.get(portfolio.id, product_id)

                plan = plan_buy(portfolio, product, holding, amount)
                saved = await store.holdings.save(plan.holding)
                transaction = await store.transactions.append(plan.transaction)
                updated = await self._reaggregate(store, plan.portfolio)

        logger.info(
            "BUY settled | user=%s product=%s amount=%s units=%s price=%s",
            user_id, product_id, transaction.amount, transaction.units, transaction.price,
        )
        return SettlementResult(transaction=transaction, portfolio=updated, holding=saved)

    async def sell(self, user_id: str, product_id: int, units: Decimal) -> SettlementResult:
        async with self._locks.hold(user_id):
            async with self._store_factory() as store:
                portfolio = await store.portfolios.get_by_user(user_id, for_update=True)
                if portfolio is None:
                    raise NotFoundError("Portfolio not found")

                holding = await store.holdings.get(portfolio.id, product_id)
                if holding is None:
                    raise NotFoundError("You do not own this product")

                product = await store.products.get(product_id)
                if product is None:
                    raise NotFoundError("Product not found")

                plan = plan_sell(portfolio, product, holding, units)
                if plan.holding is None:
                    await store.holdings.delete(holding)
                    saved = None
                else:
                    saved = await store.holdings.save(plan.holding)
                transaction = await store.transactions.append(plan.transaction)
                updated = await self._reaggregate(store, plan.portfolio)

        logger.info(
            "SELL settled | user=%s product=%s units=%s proceeds=%s",
            user_id, product_id, transaction.units, transaction.amount,
        )
        return SettlementResult(transaction=transaction, portfolio=updated, holding=saved)

    async def _reaggregate(self, store: SettlementStore, portfolio: Portfolio) -> Portfolio:
        snapshot = await reaggregate(store, portfolio, self._aggregator)
        return snapshot.portfolio


async def reaggregate(
    store: SettlementStore,
    portfolio: Portfolio,
    aggregator: PortfolioAggregator,
) -> PortfolioSnapshot:
    """
    Revalue all holdings of ``portfolio`` at visible prices and persist
    the valuations together with the recomputed totals
    """
    holdings = await store.holdings.list_for_portfolio(portfolio.id)
    products = await store.products.get_many([h.product_id for h in holdings])
    snapshot = aggregator.snapshot(portfolio, holdings, products)
    await store.holdings.save_valuations(snapshot.holdings)
    saved = await store.portfolios.save(snapshot.portfolio)
    return replace(snapshot, portfolio=saved)
