"""
Refresh strategies - how each child collection is reconciled on re-ingestion.

ReplaceAll: delete every row in the owner's scope, then insert the current
set. Used for snapshots that have no identity of their own (links, images,
cities, copyrights, per-type playlist relations).

MergeUpsert: upsert by the declared unique key, never delete. Used for
entities shared across artists and for cross-artist relationships.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from agents.errors import RefreshFailed
from models.gateway import PersistenceError, PersistenceGateway

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class ReplaceAll:
    def __init__(self, collection: str, owner_field: str, scope_fields: Tuple[str, ...] = ()):
        self.collection = collection
        self.owner_field = owner_field
        self.scope_fields = scope_fields

    def __repr__(self) -> str:
        return f"ReplaceAll({self.collection!r}, owner={self.owner_field!r}, scope={self.scope_fields!r})"

    async def apply(
        self,
        gateway: PersistenceGateway,
        owner_id: str,
        records: Sequence[Record],
        scope: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Replace the owner's rows with `records`; returns the number inserted"""
        scope = dict(scope or {})
        missing = [f for f in self.scope_fields if f not in scope]
        if missing:
            raise RefreshFailed(self.collection, f"missing scope value(s) {missing}")

        filters = {self.owner_field: owner_id, **scope}
        rows: List[Record] = [{**record, **filters} for record in records]

        # Never insert when the delete failed: old and new rows would coexist
        try:
            await gateway.delete_where(self.collection, filters)
        except PersistenceError as e:
            raise RefreshFailed(self.collection, e) from e

        if not rows:
            return 0

        try:
            inserted = await gateway.insert_many(self.collection, rows)
        except PersistenceError as e:
            raise RefreshFailed(self.collection, e) from e

        logger.debug(f"Replaced {self.collection} for {filters}: {inserted} row(s)")
        return inserted


class MergeUpsert:
    def __init__(self, collection: str, conflict_keys: Tuple[str, ...], update_existing: bool = True):
        self.collection = collection
        self.conflict_keys = conflict_keys
        self.update_existing = update_existing

    def __repr__(self) -> str:
        return f"MergeUpsert({self.collection!r}, keys={self.conflict_keys!r})"

    async def apply(self, gateway: PersistenceGateway, records: Sequence[Record]) -> int:
        if not records:
            return 0
        return await gateway.upsert(
            self.collection,
            list(records),
            list(self.conflict_keys),
            update_existing=self.update_existing,
        )


# =============================================================================
# POLICY PER COLLECTION
# =============================================================================

ARTISTS = MergeUpsert("artists", ("id",))
ALBUMS = MergeUpsert("albums", ("id",))
TRACKS = MergeUpsert("tracks", ("id",))
PLAYLISTS = MergeUpsert("playlists", ("id",))

ARTIST_ALBUMS = MergeUpsert("artist_albums", ("artist_id", "album_id", "album_group"))
ARTIST_TRACKS = MergeUpsert("artist_tracks", ("artist_id", "track_id"))
# Credits from someone else's top tracks must not downgrade an existing row
CREDITED_ARTIST_TRACKS = MergeUpsert("artist_tracks", ("artist_id", "track_id"), update_existing=False)
RELATED_ARTISTS = MergeUpsert("related_artists", ("artist_id", "related_artist_id"))

EXTERNAL_LINKS = ReplaceAll("artist_external_links", "artist_id")
ARTIST_IMAGES = ReplaceAll("artist_images", "artist_id")
TOP_CITIES = ReplaceAll("artist_top_cities", "artist_id")
ALBUM_IMAGES = ReplaceAll("album_images", "album_id")
ALBUM_COPYRIGHT = ReplaceAll("album_copyright", "album_id")
PLAYLIST_IMAGES = ReplaceAll("playlist_images", "playlist_id")
ARTIST_PLAYLISTS = ReplaceAll("artist_playlists", "artist_id", scope_fields=("relationship_type",))
# Used instead of ARTIST_PLAYLISTS when some playlists in the payload failed
ARTIST_PLAYLIST_LINKS = MergeUpsert("artist_playlists", ("artist_id", "playlist_id", "relationship_type"))
