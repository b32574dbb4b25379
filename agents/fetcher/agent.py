"""
The Fetcher Agent - Pulls artist payloads from Spotify and hands them to the Ingestor
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from agents.errors import FetchError
from agents.ingestor.agent import ArtistIngestor, IngestionResult
from config.settings import settings

logger = logging.getLogger(__name__)


# =============================================================================
# MODELS
# =============================================================================

class FetchResult(BaseModel):
    success: bool
    artist_id: str
    result: Optional[IngestionResult] = None
    error: Optional[str] = None


class FailedUpdate(BaseModel):
    id: str
    error: str


class UpdateReport(BaseModel):
    successful: List[str] = Field(default_factory=list)
    failed: List[FailedUpdate] = Field(default_factory=list)


# =============================================================================
# FETCHER AGENT
# =============================================================================

class SpotifyFetcher:
    """The Fetcher - client-credentials token cache plus artist lookups"""

    def __init__(
        self,
        ingestor: ArtistIngestor,
        client: Optional[httpx.AsyncClient] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_url: Optional[str] = None,
        api_base_url: Optional[str] = None,
        expiry_margin_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ingestor = ingestor
        self.logger = logging.getLogger("fetcher_agent")

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.fetch_timeout_seconds)

        self.client_id = client_id or settings.spotify_client_id
        self.client_secret = client_secret or settings.spotify_client_secret
        self.token_url = token_url or settings.spotify_token_url
        self.api_base_url = (api_base_url or settings.spotify_api_base_url).rstrip("/")
        self.expiry_margin_seconds = (
            settings.token_expiry_margin_seconds if expiry_margin_seconds is None else expiry_margin_seconds
        )
        self.clock = clock

        self.access_token: Optional[str] = None
        self.token_expiry: float = 0.0
        self._token_lock = asyncio.Lock()

    def invalidate_token(self) -> None:
        self.access_token = None
        self.token_expiry = 0.0

    async def get_access_token(self) -> str:
        """Return the cached token, fetching a new one once it is close to expiry"""
        if self.access_token and self.clock() < self.token_expiry:
            return self.access_token

        async with self._token_lock:
            # Another caller may have refreshed while we waited
            if self.access_token and self.clock() < self.token_expiry:
                return self.access_token
            return await self._request_token()

    async def _request_token(self) -> str:
        if not self.client_id or not self.client_secret:
            raise FetchError("Spotify client credentials are not configured")

        try:
            response = await self.client.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Token request failed with HTTP {e.response.status_code}", e.response.status_code
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"Token request failed: {e}") from e

        token = body.get("access_token")
        if not token:
            raise FetchError("Token response did not include an access_token")

        expires_in = int(body.get("expires_in") or 3600)
        self.access_token = token
        self.token_expiry = self.clock() + expires_in - self.expiry_margin_seconds
        self.logger.info(f"Fetched new access token (expires in {expires_in}s)")
        return token

    async def fetch_artist_by_id(self, artist_id: str) -> Dict[str, Any]:
        """GET /artists/{id}; a 401 refreshes the token and retries exactly once"""
        url = f"{self.api_base_url}/artists/{artist_id}"

        for attempt in (1, 2):
            token = await self.get_access_token()
            try:
                response = await self.client.get(url, headers={"Authorization": f"Bearer {token}"})
            except httpx.HTTPError as e:
                raise FetchError(f"Request for artist {artist_id} failed: {e}") from e

            if response.status_code == 401 and attempt == 1:
                self.logger.warning(f"Token rejected fetching {artist_id}, refreshing")
                self.invalidate_token()
                continue

            if response.is_error:
                raise FetchError(
                    f"Fetching artist {artist_id} failed with HTTP {response.status_code}",
                    response.status_code,
                )

            try:
                return response.json()
            except ValueError as e:
                raise FetchError(f"Artist {artist_id} response is not JSON: {e}") from e

        raise FetchError(f"Fetching artist {artist_id} failed after token refresh", 401)

    async def fetch_and_store_artist(self, artist_id: str) -> FetchResult:
        try:
            payload = await self.fetch_artist_by_id(artist_id)
            result = await self.ingestor.ingest_artist(payload)
        except Exception as e:
            self.logger.error(f"Error fetching and storing artist {artist_id}: {e}")
            return FetchResult(success=False, artist_id=artist_id, error=str(e))

        return FetchResult(
            success=result.success,
            artist_id=artist_id,
            result=result,
            error=result.error,
        )

    async def update_multiple_artists(self, artist_ids: List[str]) -> UpdateReport:
        report = UpdateReport()

        for artist_id in artist_ids:
            outcome = await self.fetch_and_store_artist(artist_id)
            if outcome.success:
                report.successful.append(artist_id)
            else:
                report.failed.append(FailedUpdate(id=artist_id, error=outcome.error or "unknown error"))

        self.logger.info(f"Updated {len(report.successful)}/{len(artist_ids)} artists")
        return report

    async def close(self):
        """Cleanup resources"""
        if self._owns_client:
            await self.client.aclose()


# =============================================================================
# CLI
# =============================================================================

async def main():
    """CLI entry point"""
    import argparse
    from models.database import AsyncSessionLocal
    from models.gateway import SqlAlchemyGateway

    parser = argparse.ArgumentParser(description="Fetcher Agent - Refresh artists from Spotify")
    parser.add_argument('artist_ids', nargs='+', help='Spotify artist IDs to refresh')
    parser.add_argument('--log-level', default=settings.log_level)

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    ingestor = ArtistIngestor(SqlAlchemyGateway(AsyncSessionLocal))
    fetcher = SpotifyFetcher(ingestor)

    try:
        report = await fetcher.update_multiple_artists(args.artist_ids)
        print(f"✅ Updated {len(report.successful)} artists")
        for failure in report.failed:
            print(f"❌ {failure.id}: {failure.error}")
    finally:
        await fetcher.close()


if __name__ == "__main__":
    asyncio.run(main())
