"""
Catalogue seeding
"""

import logging
from typing import Callable, Iterable

from finedu.domain.models import Product

logger = logging.getLogger(__name__)


async def seed_catalogue(store_factory: Callable, products: Iterable[Product]) -> int:
    """Insert ``products`` only when the product table is empty; returns rows created"""
    async with store_factory() as store:
        if await store.products.count() > 0:
            return 0
        created = await store.products.create_many(products)

    logger.info("Seeded %s catalogue products", len(created))
    return len(created)
