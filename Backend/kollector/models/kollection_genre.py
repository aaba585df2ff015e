from sqlalchemy import Table, Column, ForeignKey, Integer
from kollector.services.database import Base

kollection_genre = Table(
    'kollection_genres',
    Base.metadata,
    Column('kollection_id', Integer, ForeignKey('kollections.id', ondelete="CASCADE"), primary_key=True),
    Column('genre_id', Integer, ForeignKey('genres.id', ondelete="CASCADE"), primary_key=True)
)
