"""
The Ingestor Agent - Normalizes artist payloads into the relational schema
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from pydantic import BaseModel, Field

from agents.errors import InvalidPayload, MalformedFragment, MissingIdentity
from agents.ingestor import refresh
from agents.ingestor.normalizers import (
    normalize_album,
    normalize_artist,
    normalize_artist_images,
    normalize_artist_stub,
    normalize_external_links,
    normalize_playlist,
    normalize_top_cities,
    normalize_track,
)
from agents.ingestor.payloads import as_items, dig
from config.settings import settings
from models.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Processed in this order; groups never overlap in time
DISCOGRAPHY_GROUPS = (
    ("latest", ("latest",)),
    ("singles", ("singles", "items")),
    ("albums", ("albums", "items")),
    ("compilations", ("compilations", "items")),
    ("popular_releases", ("popularReleasesAlbums",)),
)

DISCOVERED_ON = "discovered_on"


# =============================================================================
# MODELS
# =============================================================================

class ItemFailure(BaseModel):
    item_id: Optional[str] = None
    error: str


class SectionReport(BaseModel):
    """Outcome of one payload section (links, discography, ...)"""
    section: str
    processed: int = 0
    skipped: int = 0
    failures: List[ItemFailure] = Field(default_factory=list)


class IngestionResult(BaseModel):
    success: bool
    artist_id: Optional[str] = None
    error: Optional[str] = None
    sections: List[SectionReport] = Field(default_factory=list)

    @property
    def failed_items(self) -> List[ItemFailure]:
        return [failure for report in self.sections for failure in report.failures]


# =============================================================================
# INGESTOR AGENT
# =============================================================================

class ArtistIngestor:
    """The Ingestor - upserts one artist and fans out to its related entities"""

    def __init__(self, gateway: PersistenceGateway, album_concurrency: Optional[int] = None):
        self.gateway = gateway
        self.logger = logging.getLogger("ingestor_agent")
        self.album_semaphore = asyncio.Semaphore(album_concurrency or settings.album_concurrency)

    @staticmethod
    def validate_payload(payload: Any) -> str:
        """Return the artist id or raise InvalidPayload"""
        if not isinstance(payload, dict):
            raise InvalidPayload(f"artist payload must be an object, got {type(payload).__name__}")
        artist_id = payload.get("id")
        if not isinstance(artist_id, str) or not artist_id.strip():
            raise InvalidPayload(f"artist payload has no valid id: {artist_id!r}")
        return artist_id

    async def ingest_artist(self, payload: Dict[str, Any]) -> IngestionResult:
        """Ingest one artist payload.

        Raises InvalidPayload when the payload has no usable id. Any other
        failure is returned as ``success=False``. Failures of single albums,
        tracks, related artists or playlists are isolated and listed in the
        section reports without failing the artist.
        """
        artist_id = self.validate_payload(payload)
        now = datetime.now(timezone.utc)
        result = IngestionResult(success=False, artist_id=artist_id)

        try:
            # Step 1: every other row hangs off the artist
            await refresh.ARTISTS.apply(self.gateway, [normalize_artist(payload, now)])
            self.logger.debug(f"Upserted artist {artist_id}")

            # Step 2: optional sections, fixed order
            sections = [
                ("external_links", payload.get("externalLinks"), self.process_external_links),
                ("images", payload.get("visuals"), self.process_artist_images),
                ("top_cities", dig(payload, "stats", "topCities"), self.process_top_cities),
                ("discography", payload.get("discography"), self.process_discography),
                ("top_tracks", dig(payload, "discography", "topTracks"), self.process_top_tracks),
                ("related_artists", dig(payload, "relatedContent", "relatedArtists", "items"), self.process_related_artists),
                ("playlists", dig(payload, "relatedContent", "discoveredOn", "items"), self.process_playlists),
            ]
            for name, data, handler in sections:
                if data is None:
                    continue
                report = SectionReport(section=name)
                result.sections.append(report)
                await handler(artist_id, data, report, now)

        except Exception as e:
            self.logger.error(f"Failed to ingest artist {artist_id}: {e}")
            result.error = str(e)
            return result

        result.success = True
        failed = len(result.failed_items)
        if failed:
            self.logger.warning(f"Ingested {artist_id} ({payload.get('name')}) with {failed} failed item(s)")
        else:
            self.logger.info(f"✅ Ingested: {payload.get('name')} ({artist_id})")
        return result

    async def _isolated(self, report: SectionReport, raw: Any, work: Awaitable[T]) -> Optional[T]:
        """Run one item; record its failure on the report instead of raising"""
        item_id = raw.get("id") if isinstance(raw, dict) else None
        try:
            value = await work
        except MissingIdentity as e:
            report.skipped += 1
            self.logger.warning(f"Skipping {report.section} item: {e}")
            return None
        except Exception as e:
            report.failures.append(ItemFailure(item_id=str(item_id) if item_id else None, error=str(e)))
            self.logger.error(f"Failed {report.section} item {item_id}: {e}")
            return None
        report.processed += 1
        return value

    # -------------------------------------------------------------------------
    # Snapshot sections (replace on refresh)
    # -------------------------------------------------------------------------

    async def process_external_links(self, artist_id, links, report, now) -> None:
        records = normalize_external_links(artist_id, as_items(links))
        report.processed = await refresh.EXTERNAL_LINKS.apply(self.gateway, artist_id, records)
        self.logger.debug(f"Stored {report.processed} external link(s) for {artist_id}")

    async def process_artist_images(self, artist_id, visuals, report, now) -> None:
        records = normalize_artist_images(artist_id, visuals)
        report.processed = await refresh.ARTIST_IMAGES.apply(self.gateway, artist_id, records)
        self.logger.debug(f"Stored {report.processed} image(s) for {artist_id}")

    async def process_top_cities(self, artist_id, cities, report, now) -> None:
        records = normalize_top_cities(artist_id, as_items(cities))
        report.processed = await refresh.TOP_CITIES.apply(self.gateway, artist_id, records)
        self.logger.debug(f"Stored {report.processed} top cities for {artist_id}")

    # -------------------------------------------------------------------------
    # Discography
    # -------------------------------------------------------------------------

    async def process_discography(self, artist_id, discography, report, now) -> None:
        if not isinstance(discography, dict):
            raise MalformedFragment("discography", None, f"expected an object, got {type(discography).__name__}")

        for group, path in DISCOGRAPHY_GROUPS:
            albums = as_items(dig(discography, *path))
            if not albums:
                continue

            # Two copies of one album in a group would race on its images
            unique, seen = [], set()
            for raw in albums:
                album_id = raw.get("id") if isinstance(raw, dict) else None
                if isinstance(album_id, str) and album_id:
                    if album_id in seen:
                        continue
                    seen.add(album_id)
                unique.append(raw)

            await asyncio.gather(*(
                self._isolated(report, raw, self._process_album(artist_id, raw, group, now))
                for raw in unique
            ))

    async def _process_album(self, artist_id: str, raw: Any, group: str, now: datetime) -> str:
        album = normalize_album(raw, group, now)
        album_id = album.record["id"]

        async with self.album_semaphore:
            await refresh.ALBUMS.apply(self.gateway, [album.record])
            if album.images is not None:
                await refresh.ALBUM_IMAGES.apply(self.gateway, album_id, album.images)
            if album.copyrights is not None:
                await refresh.ALBUM_COPYRIGHT.apply(self.gateway, album_id, album.copyrights)
            await refresh.ARTIST_ALBUMS.apply(self.gateway, [
                {"artist_id": artist_id, "album_id": album_id, "album_group": group}
            ])

        self.logger.debug(f"Stored album {album_id} ({group}) for {artist_id}")
        return album_id

    # -------------------------------------------------------------------------
    # Top tracks
    # -------------------------------------------------------------------------

    async def process_top_tracks(self, artist_id, tracks, report, now) -> None:
        for raw in as_items(tracks):
            await self._isolated(report, raw, self._process_top_track(artist_id, raw, now))

    async def _process_top_track(self, artist_id: str, raw: Any, now: datetime) -> str:
        track = normalize_track(raw, now)
        track_id = track.record["id"]

        if track.album_stub:
            await refresh.ALBUMS.apply(self.gateway, [track.album_stub])
        await refresh.TRACKS.apply(self.gateway, [track.record])
        await refresh.ARTIST_TRACKS.apply(self.gateway, [
            {"artist_id": artist_id, "track_id": track_id, "is_primary": True, "is_top_track": True}
        ])

        credited = [a for a in track.credited_artists if a["id"] != artist_id]
        if credited:
            await refresh.ARTISTS.apply(self.gateway, credited)
            await refresh.CREDITED_ARTIST_TRACKS.apply(self.gateway, [
                {"artist_id": a["id"], "track_id": track_id, "is_primary": False, "is_top_track": False}
                for a in credited
            ])

        self.logger.debug(f"Stored top track {track_id} for {artist_id} ({len(credited)} credited)")
        return track_id

    # -------------------------------------------------------------------------
    # Related artists (additive only)
    # -------------------------------------------------------------------------

    async def process_related_artists(self, artist_id, related, report, now) -> None:
        for raw in as_items(related):
            if isinstance(raw, dict) and raw.get("id") == artist_id:
                report.skipped += 1
                self.logger.debug(f"Skipping self reference in related artists of {artist_id}")
                continue
            await self._isolated(report, raw, self._process_related_artist(artist_id, raw, now))

    async def _process_related_artist(self, artist_id: str, raw: Any, now: datetime) -> str:
        stub = normalize_artist_stub(raw, now)
        related_id = stub["id"]

        await refresh.ARTISTS.apply(self.gateway, [stub])
        await refresh.RELATED_ARTISTS.apply(self.gateway, [
            {"artist_id": artist_id, "related_artist_id": related_id}
        ])
        self.logger.debug(f"Linked related artist {related_id} to {artist_id}")
        return related_id

    # -------------------------------------------------------------------------
    # Playlists
    # -------------------------------------------------------------------------

    async def process_playlists(self, artist_id, playlists, report, now, relationship_type: str = DISCOVERED_ON) -> None:
        linked: List[str] = []
        for raw in as_items(playlists):
            playlist_id = await self._isolated(report, raw, self._process_playlist(raw, now))
            if playlist_id and playlist_id not in linked:
                linked.append(playlist_id)

        if report.failures:
            # A failed playlist is still listed upstream; replacing would drop its relation
            await refresh.ARTIST_PLAYLIST_LINKS.apply(self.gateway, [
                {"artist_id": artist_id, "playlist_id": playlist_id, "relationship_type": relationship_type}
                for playlist_id in linked
            ])
            report.failures.append(ItemFailure(
                error=f"artist_playlists refresh skipped: {len(report.failures)} playlist(s) failed",
            ))
            self.logger.warning(
                f"⚠️ Kept existing {relationship_type} playlists for {artist_id}, linked {len(linked)} more"
            )
            return

        # Relations go in after their playlists; other relationship types stay
        await refresh.ARTIST_PLAYLISTS.apply(
            self.gateway,
            artist_id,
            [{"playlist_id": playlist_id} for playlist_id in linked],
            scope={"relationship_type": relationship_type},
        )
        self.logger.debug(f"Linked {len(linked)} {relationship_type} playlist(s) to {artist_id}")

    async def _process_playlist(self, raw: Any, now: datetime) -> str:
        playlist = normalize_playlist(raw, now)
        playlist_id = playlist.record["id"]

        await refresh.PLAYLISTS.apply(self.gateway, [playlist.record])
        if playlist.images is not None:
            await refresh.PLAYLIST_IMAGES.apply(self.gateway, playlist_id, playlist.images)

        self.logger.debug(f"Stored playlist {playlist_id}")
        return playlist_id
