"""
System Setting Repository
JSON-encoded key/value store
"""

import json
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.infrastructure.db.models import SystemSettingModel
from finedu.utils.time import now_utc_naive


class SystemSettingRepository:
    """Repository for system settings"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> Optional[Any]:
        result = await self.session.execute(
            select(SystemSettingModel).where(SystemSettingModel.key == key)
        )
        model = result.scalar_one_or_none()
        return json.loads(model.value) if model else None

    async def get_by_prefix(self, prefix: str) -> Dict[str, Any]:
        """Settings whose key starts with ``prefix``, keyed without the prefix"""
        result = await self.session.execute(
            select(SystemSettingModel).where(SystemSettingModel.key.startswith(prefix))
        )
        return {
            model.key[len(prefix):]: json.loads(model.value)
            for model in result.scalars().all()
        }

    async def upsert(self, key: str, value: Any, description: Optional[str] = None) -> None:
        result = await self.session.execute(
            select(SystemSettingModel).where(SystemSettingModel.key == key)
        )
        existing = result.scalar_one_or_none()
        encoded = json.dumps(value)
        if existing:
            existing.value = encoded
            if description is not None:
                existing.description = description
            existing.updated_at = now_utc_naive()
        else:
            self.session.add(
                SystemSettingModel(key=key, value=encoded, description=description)
            )
        await self.session.flush()
