"""
Typed views of the artist payload returned by the upstream API.

Every field is optional: the upstream shape evolves independently and any
nested block may be missing. Fragments are validated one at a time by the
normalizers so that a bad album never takes its siblings down with it.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Fragment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ImageFragment(Fragment):
    url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class LinkFragment(Fragment):
    name: Optional[str] = None
    url: Optional[str] = None


class CityFragment(Fragment):
    city: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    listener_count: Optional[int] = Field(default=None, alias="listenerCount")


class StatsFragment(Fragment):
    followers: Optional[int] = None
    monthly_listeners: Optional[int] = Field(default=None, alias="monthlyListeners")
    world_rank: Optional[int] = Field(default=None, alias="worldRank")


class VisualsFragment(Fragment):
    avatar: Optional[List[Optional[ImageFragment]]] = None
    header: Optional[List[Optional[ImageFragment]]] = None
    gallery: Optional[List[Optional[List[Optional[ImageFragment]]]]] = None


class ArtistFragment(Fragment):
    id: Optional[str] = None
    name: Optional[str] = None
    share_url: Optional[str] = Field(default=None, alias="shareUrl")
    verified: Optional[bool] = None
    biography: Optional[str] = None
    stats: Optional[StatsFragment] = None


class ArtistRef(Fragment):
    id: Optional[str] = None
    name: Optional[str] = None
    share_url: Optional[str] = Field(default=None, alias="shareUrl")


class CopyrightFragment(Fragment):
    type: Optional[str] = None
    text: Optional[str] = None


class AlbumFragment(Fragment):
    id: Optional[str] = None
    name: Optional[str] = None
    share_url: Optional[str] = Field(default=None, alias="shareUrl")
    type: Optional[str] = None
    label: Optional[str] = None
    track_count: Optional[int] = Field(default=None, alias="trackCount")
    cover: Optional[List[Optional[ImageFragment]]] = None
    copyright: Optional[List[Optional[CopyrightFragment]]] = None


class TrackAlbumRef(Fragment):
    id: Optional[str] = None
    name: Optional[str] = None
    share_url: Optional[str] = Field(default=None, alias="shareUrl")


class TrackFragment(Fragment):
    id: Optional[str] = None
    name: Optional[str] = None
    share_url: Optional[str] = Field(default=None, alias="shareUrl")
    explicit: Optional[bool] = None
    duration_ms: Optional[int] = Field(default=None, alias="durationMs")
    disc_number: Optional[int] = Field(default=None, alias="discNumber")
    play_count: Optional[int] = Field(default=None, alias="playCount")
    album: Optional[TrackAlbumRef] = None
    artists: Optional[List[Optional[ArtistRef]]] = None


class OwnerRef(Fragment):
    name: Optional[str] = None


class PlaylistFragment(Fragment):
    id: Optional[str] = None
    name: Optional[str] = None
    share_url: Optional[str] = Field(default=None, alias="shareUrl")
    description: Optional[str] = None
    owner: Optional[OwnerRef] = None
    images: Optional[List[Optional[List[Optional[ImageFragment]]]]] = None


def dig(data: Any, *path: str) -> Any:
    """Walk nested mappings, returning None as soon as a level is missing"""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def as_items(value: Any) -> Optional[List[Dict[str, Any]]]:
    """A payload section as a list, or None when the section is absent"""
    if value is None:
        return None
    if isinstance(value, list):
        return value
    return [value]
