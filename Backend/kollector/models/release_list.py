from sqlalchemy import Column, String, Integer, DateTime

from kollector.models.music_release import utcnow
from kollector.services.database import Base

class ReleaseList(Base):
    __tablename__ = "lists"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_modified = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    # Memberships live in the list_releases table and are queried directly
