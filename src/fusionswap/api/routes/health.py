"""Liveness and readiness endpoints."""

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fusionswap import __version__
from fusionswap.config import get_settings
from fusionswap.ledger.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "fusionswap"


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/health/detailed")
async def detailed_health():
    """Readiness: database round-trip plus the redacted configuration."""
    try:
        async with get_db() as session:
            await session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": SERVICE_NAME,
        "version": __version__,
        "database": database,
        "config": get_settings().get_safe_dict(),
    }
