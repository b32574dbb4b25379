# models/artist.py
from sqlalchemy import Column, String, Text, Integer, BigInteger, Boolean, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from models.database import Base

class Artist(Base):
    __tablename__ = "artists"

    id = Column(String(64), primary_key=True)
    name = Column(String(300))
    share_url = Column(Text)
    verified = Column(Boolean, default=False)
    biography = Column(Text)
    followers = Column(BigInteger, default=0)
    monthly_listeners = Column(BigInteger, default=0)
    world_rank = Column(Integer, default=0)
    last_updated = Column(DateTime(timezone=True))

    external_links = relationship("ArtistExternalLink", back_populates="artist", cascade="all, delete-orphan")
    images = relationship("ArtistImage", back_populates="artist", cascade="all, delete-orphan")
    top_cities = relationship("ArtistTopCity", back_populates="artist", cascade="all, delete-orphan")


class ArtistExternalLink(Base):
    __tablename__ = "artist_external_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(100))
    url = Column(Text)

    artist = relationship("Artist", back_populates="external_links")


class ArtistImage(Base):
    __tablename__ = "artist_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False, index=True)
    image_type = Column(String(20), nullable=False)
    url = Column(Text)
    width = Column(Integer)
    height = Column(Integer)
    image_index = Column(Integer, default=0)

    artist = relationship("Artist", back_populates="images")

    __table_args__ = (
        CheckConstraint(
            "image_type IN ('avatar', 'header', 'gallery')",
            name="valid_image_type"
        ),
    )


class ArtistTopCity(Base):
    __tablename__ = "artist_top_cities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False, index=True)
    city = Column(String(200))
    country = Column(String(10))
    region = Column(String(200))
    listener_count = Column(BigInteger, default=0)
    rank = Column(Integer, nullable=False)

    artist = relationship("Artist", back_populates="top_cities")


class RelatedArtist(Base):
    __tablename__ = "related_artists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False)
    related_artist_id = Column(String(64), ForeignKey('artists.id', ondelete='CASCADE'), nullable=False)

    __table_args__ = (
        UniqueConstraint('artist_id', 'related_artist_id', name='unique_related_artist'),
    )
