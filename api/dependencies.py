# api/dependencies.py
from fastapi import Request

from agents.fetcher.agent import SpotifyFetcher
from agents.ranker.agent import RankCacheUpdater


def get_fetcher(request: Request) -> SpotifyFetcher:
    return request.app.state.fetcher


def get_ranker(request: Request) -> RankCacheUpdater:
    return request.app.state.ranker
