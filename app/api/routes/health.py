from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_session
from app.core.logging import get_logger

router = APIRouter(prefix="/health", tags=["health"])
log = get_logger("health")


@router.get("")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    Liveness plus a database round-trip.

    Returns:
        200 {"status": "healthy", "database": "ok"}, or 503 when the database is unreachable
    """
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        log.error(f"Health check database check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unavailable"})
    return {"status": "healthy", "database": "ok"}
