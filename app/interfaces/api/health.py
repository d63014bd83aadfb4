"""Liveness and database connectivity checks."""

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.core.exceptions import AppError
from app.infrastructure.executor import QueryExecutor
from app.infrastructure.pool import ConnectionPool
from app.interfaces.deps import get_executor, get_pool

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/")
def root():
    return {"status": "online", "message": "Server is running"}


@router.get("/check")
async def check(
    executor: QueryExecutor = Depends(get_executor),
    pool: ConnectionPool = Depends(get_pool),
):
    try:
        result = await executor.execute("SELECT CURRENT_TIMESTAMP AS server_time")
    except AppError as e:
        logger.error("Database check failed", error=e.message)
        return JSONResponse(
            status_code=e.status_code,
            content={
                "status": "Failed",
                "message": "Database connection error",
                "error": e.message,
                "pool": pool.status(),
            },
        )

    current = result.scalar()
    return {
        "status": "Connected",
        "message": "Database connection successful",
        "currentDate": current.isoformat() if hasattr(current, "isoformat") else current,
        "pool": pool.status(),
    }
