from datetime import datetime, timezone

from fastapi import APIRouter, Request

from app.core.config import settings

router = APIRouter()


@router.get("")
async def health_check(request: Request):
    database = getattr(request.app.state, "database", None)
    return {
        "success": True,
        "message": "Server is healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": bool(database and database.is_connected()),
    }
