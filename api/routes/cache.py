# api/routes/cache.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from agents.ranker.agent import RankCacheUpdater
from api.dependencies import get_ranker

router = APIRouter()

@router.post("/cache/rebuild")
async def rebuild_cache(ranker: RankCacheUpdater = Depends(get_ranker)):
    """
    Rebuild the top artists / top tracks leaderboards.
    """
    report = await ranker.rebuild_all()
    status_code = 500 if report.status == "error" else 200
    return JSONResponse(status_code=status_code, content=report.model_dump())
