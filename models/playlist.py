# models/playlist.py
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from models.database import Base

class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(String(64), primary_key=True)
    name = Column(String(500))
    share_url = Column(Text)
    description = Column(Text, default='')
    owner_name = Column(String(300), default='')
    last_updated = Column(DateTime(timezone=True))

    images = relationship("PlaylistImage", back_populates="playlist", cascade="all, delete-orphan")


class PlaylistImage(Base):
    __tablename__ = "playlist_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    playlist_id = Column(String(64), ForeignKey('playlists.id', ondelete='CASCADE'), nullable=False, index=True)
    url = Column(Text, nullable=False)
    width = Column(Integer)
    height = Column(Integer)

    playlist = relationship("Playlist", back_populates="images")


class ArtistPlaylist(Base):
    __tablename__ = "artist_playlists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False)
    playlist_id = Column(String(64), ForeignKey('playlists.id', ondelete='CASCADE'), nullable=False)
    relationship_type = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint('artist_id', 'playlist_id', 'relationship_type', name='unique_artist_playlist_type'),
    )
