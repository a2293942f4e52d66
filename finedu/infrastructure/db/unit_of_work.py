"""
Unit of Work
Transactional boundary over one AsyncSession plus per-portfolio locks
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from finedu.infrastructure.db.repositories.holding_repository import HoldingRepository
from finedu.infrastructure.db.repositories.portfolio_repository import PortfolioRepository
from finedu.infrastructure.db.repositories.price_history_repository import PriceHistoryRepository
from finedu.infrastructure.db.repositories.product_repository import ProductRepository
from finedu.infrastructure.db.repositories.setting_repository import SystemSettingRepository
from finedu.infrastructure.db.repositories.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Groups repository writes into one commit

    Usage:
        async with UnitOfWork(session) as uow:
            await uow.portfolios.save(...)

    Commits on clean exit, rolls back on any exception (which propagates).
    """

    def __init__(self, session: AsyncSession, owns_session: bool = False):
        self.session = session
        self._owns_session = owns_session
        self.products = ProductRepository(session)
        self.portfolios = PortfolioRepository(session)
        self.holdings = HoldingRepository(session)
        self.transactions = TransactionRepository(session)
        self.price_history = PriceHistoryRepository(session)
        self.settings = SystemSettingRepository(session)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                await self.session.commit()
            else:
                logger.debug("Rolling back unit of work: %s", exc_type.__name__)
                await self.session.rollback()
        finally:
            if self._owns_session:
                await self.session.close()

    @classmethod
    def factory(cls, session_factory: async_sessionmaker) -> Callable[[], "UnitOfWork"]:
        """Factory producing units of work that each open (and close) a session"""
        return lambda: cls(session_factory(), owns_session=True)


class PortfolioLocks:
    """
    Keyed asyncio locks, one per user portfolio

    Settlement and simulator revaluation of the same portfolio never
    interleave. Locks are dropped once nobody holds a reference.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self.lock_for(key)
        async with lock:
            yield


# Process-wide registry shared by API settlements and the market simulator
portfolio_locks = PortfolioLocks()
