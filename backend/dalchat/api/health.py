from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from dalchat.config import settings
from dalchat.database import get_db
from dalchat.redis.client import redis_status
from dalchat.websocket.manager import manager

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    report = {
        "domain": settings.SERVER_DOMAIN,
        "redis": redis_status(),
        "live_feeds": manager.active_count(),
    }
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected", **report}
    except Exception as exc:
        return {"status": "unhealthy", "database": "disconnected", "error": str(exc), **report}
