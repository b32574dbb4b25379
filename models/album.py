# models/album.py
from sqlalchemy import Column, String, Text, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from models.database import Base

class Album(Base):
    __tablename__ = "albums"

    id = Column(String(64), primary_key=True)
    name = Column(String(500))
    share_url = Column(Text)
    album_type = Column(String(50))
    label = Column(String(300))
    track_count = Column(Integer, default=0)
    # Never populated: the artist payload does not carry release dates
    release_date = Column(Date)
    last_updated = Column(DateTime(timezone=True))

    images = relationship("AlbumImage", back_populates="album", cascade="all, delete-orphan")
    copyrights = relationship("AlbumCopyright", back_populates="album", cascade="all, delete-orphan")


class AlbumImage(Base):
    __tablename__ = "album_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    album_id = Column(String(64), ForeignKey('albums.id', ondelete='CASCADE'), nullable=False, index=True)
    url = Column(Text)
    width = Column(Integer)
    height = Column(Integer)

    album = relationship("Album", back_populates="images")


class AlbumCopyright(Base):
    __tablename__ = "album_copyright"

    id = Column(Integer, primary_key=True, autoincrement=True)
    album_id = Column(String(64), ForeignKey('albums.id', ondelete='CASCADE'), nullable=False, index=True)
    copyright_type = Column(String(10))
    text = Column(Text)

    album = relationship("Album", back_populates="copyrights")


class ArtistAlbum(Base):
    __tablename__ = "artist_albums"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False)
    album_id = Column(String(64), ForeignKey('albums.id', ondelete='CASCADE'), nullable=False)
    album_group = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint('artist_id', 'album_id', 'album_group', name='unique_artist_album_group'),
    )
