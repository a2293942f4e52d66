"""
Health Routes
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.infrastructure.db.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
        return "connected"
    except Exception as exc:
        logger.error("Database health check failed: %s", exc)
        return "error"


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Liveness plus component status"""
    scheduler = getattr(request.app.state, "market_scheduler", None)
    market_status = "disabled"
    if scheduler is not None:
        market_status = "running" if scheduler.is_running else "stopped"

    return {
        "status": "healthy",
        "service": "FinEdu",
        "version": "1.0.0",
        "services": {
            "api": "running",
            "database": await _database_status(db),
            "market_simulator": market_status,
        },
    }


@router.get("/ready")
async def readiness(request: Request, db: AsyncSession = Depends(get_db)):
    """Ready once configuration is loaded and the database answers"""
    config_loaded = getattr(request.app.state, "config_engine", None) is not None
    database = await _database_status(db)
    ready = config_loaded and database == "connected"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"ready": ready, "config_loaded": config_loaded, "database": database},
    )
