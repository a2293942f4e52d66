"""
Market Config Service
Effective simulator configuration = YAML defaults + stored overrides
"""

import logging
from typing import Any, Callable, Dict, Mapping

from finedu.domain.models import MarketConfig
from finedu.domain.models.market import validate_config, validate_config_value

logger = logging.getLogger(__name__)

SETTING_PREFIX = "market_config_"


class MarketConfigService:
    """Reads and writes ``market_config_<key>`` system settings"""

    def __init__(self, store_factory: Callable, defaults: MarketConfig):
        self._store_factory = store_factory
        self.defaults = defaults

    async def current(self) -> MarketConfig:
        async with self._store_factory() as store:
            overrides = await store.settings.get_by_prefix(SETTING_PREFIX)
        return self.defaults.with_overrides(overrides)

    async def update(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate and persist a partial configuration

        Raises:
            InvalidMarketConfigError: any value invalid (nothing is written)
        """
        validated = validate_config(values)
        async with self._store_factory() as store:
            for key, value in validated.items():
                await store.settings.upsert(f"{SETTING_PREFIX}{key}", value)

        logger.info("Market configuration updated | keys=%s", ", ".join(sorted(validated)))
        return validated

    async def set_value(self, key: str, value: Any) -> Any:
        validated = validate_config_value(key, value)
        async with self._store_factory() as store:
            await store.settings.upsert(f"{SETTING_PREFIX}{key}", validated)

        logger.info("Market configuration updated | key=%s", key)
        return validated
