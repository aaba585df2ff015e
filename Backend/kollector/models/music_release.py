import datetime

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey

from kollector.services.database import Base


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class MusicRelease(Base):
    __tablename__ = "music_releases"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(300), nullable=False, index=True)
    release_year = Column(DateTime(timezone=True), nullable=True)
    orig_release_year = Column(DateTime(timezone=True), nullable=True)

    # JSON arrays of ids, e.g. "[12,40]". See services/json_fields.py
    artists = Column(Text, nullable=True)
    genres = Column(Text, nullable=True)

    live = Column(Boolean, default=False, nullable=False)
    label_id = Column(Integer, ForeignKey("labels.id", ondelete="SET NULL"), nullable=True, index=True)
    country_id = Column(Integer, ForeignKey("countries.id", ondelete="SET NULL"), nullable=True, index=True)
    format_id = Column(Integer, ForeignKey("formats.id", ondelete="SET NULL"), nullable=True, index=True)
    packaging_id = Column(Integer, ForeignKey("packagings.id", ondelete="SET NULL"), nullable=True)
    label_number = Column(String(100), nullable=True, index=True)
    length_in_seconds = Column(Integer, nullable=True)
    upc = Column(String(50), nullable=True)

    # JSON documents
    purchase_info = Column(Text, nullable=True)
    images = Column(Text, nullable=True)
    links = Column(Text, nullable=True)
    media = Column(Text, nullable=True)

    discogs_id = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    date_added = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    last_modified = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
