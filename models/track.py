# models/track.py
from sqlalchemy import Column, String, Text, Integer, BigInteger, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from models.database import Base

class Track(Base):
    __tablename__ = "tracks"

    id = Column(String(64), primary_key=True)
    name = Column(String(500))
    share_url = Column(Text)
    explicit = Column(Boolean, default=False)
    duration_ms = Column(Integer, default=0)
    disc_number = Column(Integer, default=1)
    play_count = Column(BigInteger, default=0)
    album_id = Column(String(64), ForeignKey('albums.id', ondelete='SET NULL'), nullable=True, index=True)
    last_updated = Column(DateTime(timezone=True))

    # Relacionamentos
    album = relationship("Album")


class ArtistTrack(Base):
    __tablename__ = "artist_tracks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False)
    track_id = Column(String(64), ForeignKey('tracks.id', ondelete='CASCADE'), nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    is_top_track = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint('artist_id', 'track_id', name='unique_artist_track'),
    )
