from sqlalchemy import Column, String, Integer

from kollector.services.database import Base

class Format(Base):
    __tablename__ = "formats"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), nullable=False, index=True)
