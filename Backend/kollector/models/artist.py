from sqlalchemy import Column, String, Integer

from kollector.services.database import Base

class Artist(Base):
    __tablename__ = "artists"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)

    # Releases reference artists through the JSON id array in
    # MusicRelease.artists, so there is no relationship() here.
