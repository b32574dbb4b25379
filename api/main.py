# api/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agents.fetcher.agent import SpotifyFetcher
from agents.ingestor.agent import ArtistIngestor
from agents.ranker.agent import RankCacheUpdater
from api.routes import artists, cache, health
from models.database import AsyncSessionLocal
from models.gateway import SqlAlchemyGateway


@asynccontextmanager
async def lifespan(app: FastAPI):
    gateway = SqlAlchemyGateway(AsyncSessionLocal)
    app.state.fetcher = SpotifyFetcher(ArtistIngestor(gateway))
    app.state.ranker = RankCacheUpdater(gateway)
    try:
        yield
    finally:
        await app.state.fetcher.close()


app = FastAPI(title="Sound Atlas API", version="0.1.0", lifespan=lifespan)

app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(artists.router, prefix="/api/v1", tags=["artists"])
app.include_router(cache.router, prefix="/api/v1", tags=["cache"])

@app.get("/")
async def root():
    return {"message": "Sound Atlas API"}
