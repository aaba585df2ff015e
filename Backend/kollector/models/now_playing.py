from sqlalchemy import Column, Integer, DateTime, ForeignKey
from kollector.models.music_release import utcnow
from kollector.services.database import Base

class NowPlaying(Base):
    __tablename__ = "now_playings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    music_release_id = Column(Integer, ForeignKey("music_releases.id", ondelete="CASCADE"), nullable=False, index=True)
    played_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
