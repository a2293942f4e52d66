"""
MARKET SIMULATOR
One tick = move every active product price, log it, revalue portfolios

RESPONSIBILITIES:
- Apply the price engine to each active product
- Append a PricePoint per price change
- Re-aggregate every portfolio after the price pass

RULES:
✅ Price pass commits as one unit
✅ Each portfolio is revalued under its settlement lock
✅ A failing tick is logged, never raised into the scheduler
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from finedu.domain.models import PricePoint
from finedu.domain.services.price_engine import PriceEngine, PriceMove
from finedu.services.market_config import MarketConfigService
from finedu.services.portfolio_service import PortfolioService
from finedu.utils.time import now_utc_naive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickReport:
    moves: List[PriceMove]
    portfolios_revalued: int
    started_at: datetime

    @property
    def products_updated(self) -> int:
        return len(self.moves)


class MarketSimulator:
    """
    Market Simulator
    Stateless apart from counters; scheduling lives in MarketScheduler
    """

    def __init__(
        self,
        store_factory: Callable,
        config_service: MarketConfigService,
        portfolio_service: PortfolioService,
        rng: Optional[random.Random] = None,
    ):
        self._store_factory = store_factory
        self._config_service = config_service
        self._portfolio_service = portfolio_service
        self._rng = rng or random.Random()
        self.tick_count = 0
        self.failed_ticks = 0
        self.last_tick_at: Optional[datetime] = None

    async def tick(self) -> TickReport:
        """Run one simulation step now"""
        started_at = now_utc_naive()
        config = await self._config_service.current()
        engine = PriceEngine(config, self._rng)

        moves: List[PriceMove] = []
        async with self._store_factory() as store:
            products = await store.products.list_active()
            for product in products:
                move = engine.next_price(product)
                await store.products.update_price(product.id, move.new_price)
                await store.price_history.append(
                    PricePoint(
                        product_id=product.id,
                        price=move.new_price,
                        change=move.change,
                        change_percent=move.change_percent,
                        timestamp=started_at,
                    )
                )
                moves.append(move)
            user_ids = await store.portfolios.list_user_ids()

        revalued = 0
        for user_id in user_ids:
            if await self._portfolio_service.revalue(user_id) is not None:
                revalued += 1

        self.tick_count += 1
        self.last_tick_at = started_at
        logger.info(
            "Market tick #%s | products=%s portfolios=%s",
            self.tick_count, len(moves), revalued,
        )
        return TickReport(moves=moves, portfolios_revalued=revalued, started_at=started_at)

    async def run_tick_safely(self) -> Optional[TickReport]:
        """Scheduler entry point; errors are logged and swallowed for the next tick"""
        try:
            return await self.tick()
        except Exception:
            self.failed_ticks += 1
            logger.exception("Market tick failed")
            return None
