# models/__init__.py
from models.artist import Artist, ArtistExternalLink, ArtistImage, ArtistTopCity, RelatedArtist
from models.album import Album, AlbumImage, AlbumCopyright, ArtistAlbum
from models.track import Track, ArtistTrack
from models.playlist import Playlist, PlaylistImage, ArtistPlaylist
from models.cache import CachedTopArtist, CachedTopTrack
from models.database import Base, engine, AsyncSessionLocal, get_session
from models.gateway import PersistenceError, PersistenceGateway, SqlAlchemyGateway

__all__ = [
    "Artist",
    "ArtistExternalLink",
    "ArtistImage",
    "ArtistTopCity",
    "RelatedArtist",
    "Album",
    "AlbumImage",
    "AlbumCopyright",
    "ArtistAlbum",
    "Track",
    "ArtistTrack",
    "Playlist",
    "PlaylistImage",
    "ArtistPlaylist",
    "CachedTopArtist",
    "CachedTopTrack",
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_session",
    "PersistenceError",
    "PersistenceGateway",
    "SqlAlchemyGateway",
]
