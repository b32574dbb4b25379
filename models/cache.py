# models/cache.py
from sqlalchemy import Column, String, Integer, ForeignKey

from models.database import Base

class CachedTopArtist(Base):
    __tablename__ = "cached_top_artists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False)
    rank = Column(Integer, nullable=False)


class CachedTopTrack(Base):
    __tablename__ = "cached_top_tracks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    track_id = Column(String(64), ForeignKey('tracks.id', ondelete='CASCADE'), nullable=False)
    rank = Column(Integer, nullable=False)
