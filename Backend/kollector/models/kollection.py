from sqlalchemy import Column, String, Integer
from sqlalchemy.orm import relationship
from kollector.models.genre import Genre
from kollector.models.kollection_genre import kollection_genre

from kollector.services.database import Base

class Kollection(Base):
    __tablename__ = "kollections"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)

    # A kollection groups genres; releases match when they carry any of them
    genres = relationship(Genre, secondary=kollection_genre, order_by=Genre.name)
