# api/routes/health.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from datetime import datetime, timezone

from config.settings import settings
from models.artist import Artist
from models.cache import CachedTopArtist
from models.database import get_session

router = APIRouter()

@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    Database reachability, catalogue size and whether the ranking cache and
    the Spotify credentials are in place.
    """
    checks = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {},
    }

    try:
        checks["artists"] = await session.scalar(select(func.count()).select_from(Artist))
        cached = await session.scalar(select(func.count()).select_from(CachedTopArtist))
        checks["services"]["database"] = "ok"
        checks["services"]["rank_cache"] = "ok" if cached else "empty"
    except Exception as e:
        checks["services"]["database"] = f"error: {str(e)}"
        checks["status"] = "unhealthy"

    has_credentials = bool(settings.spotify_client_id and settings.spotify_client_secret)
    checks["services"]["spotify"] = "configured" if has_credentials else "missing credentials"

    return checks
