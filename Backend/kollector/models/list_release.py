from sqlalchemy import Table, Column, ForeignKey, Integer, DateTime
from kollector.models.music_release import utcnow
from kollector.services.database import Base

list_release = Table(
    'list_releases',
    Base.metadata,
    Column('list_id', Integer, ForeignKey('lists.id', ondelete="CASCADE"), primary_key=True),
    Column('music_release_id', Integer, ForeignKey('music_releases.id', ondelete="CASCADE"), primary_key=True),
    Column('added_at', DateTime(timezone=True), default=utcnow, nullable=False)
)
