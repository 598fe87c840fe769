# infirmary/routers/health.py
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from infirmary.db import ping_database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

@router.get("/health")
async def health():
    """Estado del servicio y de la conexión a la base de datos"""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await ping_database()
    except (SQLAlchemyError, OSError) as exc:
        logger.error(f"Health check: base de datos no disponible: {exc}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected", "timestamp": timestamp},
        )
    return {"status": "healthy", "database": "connected", "timestamp": timestamp}
