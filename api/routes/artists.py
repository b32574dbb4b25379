# api/routes/artists.py
from fastapi import APIRouter, Depends

from agents.fetcher.agent import FetchResult, SpotifyFetcher
from api.dependencies import get_fetcher

router = APIRouter()

@router.post("/artists/{artist_id}/refresh", response_model=FetchResult)
async def refresh_artist(artist_id: str, fetcher: SpotifyFetcher = Depends(get_fetcher)):
    """
    Fetch the artist from Spotify and re-ingest it.

    Always answers 200 with a success/error envelope; upstream and
    database failures are reported in the body.
    """
    return await fetcher.fetch_and_store_artist(artist_id)
