"""
Entity normalizers - map one upstream payload fragment to flat table records.

Pure functions: no I/O, no logging. Counters default to 0, descriptive
fields to None or '', and a missing nested block never raises. A fragment
without an id raises MissingIdentity; a fragment of the wrong shape raises
MalformedFragment.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import ValidationError

from agents.errors import MalformedFragment, MissingIdentity
from agents.ingestor.payloads import (
    AlbumFragment,
    ArtistFragment,
    ArtistRef,
    CityFragment,
    Fragment,
    ImageFragment,
    LinkFragment,
    PlaylistFragment,
    TrackFragment,
    VisualsFragment,
)

Record = Dict[str, Any]
F = TypeVar("F", bound=Fragment)


@dataclass
class NormalizedAlbum:
    record: Record
    # None when the payload carried no cover / copyright block at all
    images: Optional[List[Record]] = None
    copyrights: Optional[List[Record]] = None


@dataclass
class NormalizedTrack:
    record: Record
    album_stub: Optional[Record] = None
    credited_artists: List[Record] = field(default_factory=list)


@dataclass
class NormalizedPlaylist:
    record: Record
    images: Optional[List[Record]] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate(model: Type[F], raw: Any, entity: str) -> F:
    if not isinstance(raw, dict):
        raise MalformedFragment(entity, None, f"expected an object, got {type(raw).__name__}")
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        item_id = raw.get("id")
        raise MalformedFragment(entity, item_id if isinstance(item_id, str) else None, e) from e


def _identified(model: Type[F], raw: Any, entity: str) -> F:
    if isinstance(raw, dict) and raw.get("id") in (None, ""):
        raise MissingIdentity(entity)
    fragment = _validate(model, raw, entity)
    if not fragment.id:
        raise MissingIdentity(entity)
    return fragment


def _stub(id: str, now: datetime, **fields: Any) -> Record:
    # A reference without a name must not blank out a fully ingested row
    return {
        "id": id,
        **{key: value for key, value in fields.items() if value is not None},
        "last_updated": now,
    }


def _image_record(image: ImageFragment, **owner: Any) -> Record:
    return {
        **owner,
        "url": image.url,
        "width": image.width or None,
        "height": image.height or None,
    }


# =============================================================================
# ARTISTS
# =============================================================================

def normalize_artist(raw: Any, now: Optional[datetime] = None) -> Record:
    artist = _identified(ArtistFragment, raw, "artist")
    stats = artist.stats
    return {
        "id": artist.id,
        "name": artist.name,
        "share_url": artist.share_url,
        "verified": bool(artist.verified),
        "biography": artist.biography,
        "followers": (stats.followers if stats else None) or 0,
        "monthly_listeners": (stats.monthly_listeners if stats else None) or 0,
        "world_rank": (stats.world_rank if stats else None) or 0,
        "last_updated": now or _utcnow(),
    }


def normalize_artist_stub(raw: Any, now: Optional[datetime] = None) -> Record:
    """Minimal artist row for artists only known by reference"""
    artist = _identified(ArtistRef, raw, "artist")
    return _stub(artist.id, now or _utcnow(), name=artist.name, share_url=artist.share_url)


def normalize_external_links(artist_id: str, links: List[Any]) -> List[Record]:
    records = []
    for raw in links:
        if raw is None:
            continue
        link = _validate(LinkFragment, raw, "external_link")
        records.append({"artist_id": artist_id, "name": link.name, "url": link.url})
    return records


def normalize_artist_images(artist_id: str, raw_visuals: Any) -> List[Record]:
    visuals = _validate(VisualsFragment, raw_visuals, "visuals")
    records = []

    for image_type in ("avatar", "header"):
        for image in getattr(visuals, image_type) or []:
            if image is None:
                continue
            records.append(_image_record(
                image, artist_id=artist_id, image_type=image_type, image_index=0
            ))

    # Gallery images keep the index of the group they came in
    for index, group in enumerate(visuals.gallery or []):
        for image in group or []:
            if image is None:
                continue
            records.append(_image_record(
                image, artist_id=artist_id, image_type="gallery", image_index=index
            ))

    return records


def normalize_top_cities(artist_id: str, cities: List[Any]) -> List[Record]:
    """Rank follows the upstream ordering, not listener_count"""
    records = []
    for position, raw in enumerate(cities, start=1):
        if raw is None:
            continue
        city = _validate(CityFragment, raw, "top_city")
        records.append({
            "artist_id": artist_id,
            "city": city.city,
            "country": city.country,
            "region": city.region or None,
            "listener_count": city.listener_count or 0,
            "rank": position,
        })
    return records


# =============================================================================
# ALBUMS
# =============================================================================

def normalize_album(raw: Any, album_group: str, now: Optional[datetime] = None) -> NormalizedAlbum:
    album = _identified(AlbumFragment, raw, "album")
    record = {
        "id": album.id,
        "name": album.name,
        "share_url": album.share_url,
        "album_type": album.type or album_group,
        "label": album.label,
        "track_count": album.track_count or 0,
        "release_date": None,
        "last_updated": now or _utcnow(),
    }

    images = None
    if album.cover is not None:
        images = [
            {"album_id": album.id, "url": image.url, "width": image.width, "height": image.height}
            for image in album.cover
            if image is not None
        ]

    copyrights = None
    if album.copyright is not None:
        copyrights = [
            {"album_id": album.id, "copyright_type": c.type, "text": c.text}
            for c in album.copyright
            if c is not None
        ]

    return NormalizedAlbum(record=record, images=images, copyrights=copyrights)


# =============================================================================
# TRACKS
# =============================================================================

def normalize_track(raw: Any, now: Optional[datetime] = None) -> NormalizedTrack:
    now = now or _utcnow()
    track = _identified(TrackFragment, raw, "track")
    album = track.album if track.album and track.album.id else None

    record = {
        "id": track.id,
        "name": track.name,
        "share_url": track.share_url,
        "explicit": bool(track.explicit),
        "duration_ms": track.duration_ms or 0,
        "disc_number": track.disc_number or 1,
        "play_count": track.play_count or 0,
        "album_id": album.id if album else None,
        "last_updated": now,
    }

    album_stub = None
    if album:
        album_stub = _stub(album.id, now, name=album.name, share_url=album.share_url)

    credited = [
        _stub(a.id, now, name=a.name, share_url=a.share_url)
        for a in track.artists or []
        if a is not None and a.id
    ]

    return NormalizedTrack(record=record, album_stub=album_stub, credited_artists=credited)


# =============================================================================
# PLAYLISTS
# =============================================================================

def normalize_playlist(raw: Any, now: Optional[datetime] = None) -> NormalizedPlaylist:
    playlist = _identified(PlaylistFragment, raw, "playlist")
    record = {
        "id": playlist.id,
        "name": playlist.name,
        "share_url": playlist.share_url,
        "description": playlist.description or "",
        "owner_name": (playlist.owner.name if playlist.owner else None) or "",
        "last_updated": now or _utcnow(),
    }

    images = None
    if playlist.images is not None:
        images = [
            _image_record(image, playlist_id=playlist.id)
            for group in playlist.images
            for image in group or []
            if image is not None and image.url
        ]

    return NormalizedPlaylist(record=record, images=images)
