from sqlalchemy import Column, String, Integer

from kollector.services.database import Base

class Packaging(Base):
    __tablename__ = "packagings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), nullable=False, index=True)
