from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker
from kollector.core.config import settings  # where DATABASE_URL lives

engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()

async def get_db() -> AsyncSession:
    """
    Dependency that provides a database session.
    The session commits when the request succeeds and rolls back if anything
    raised, so entities created while resolving names never outlive a failed
    request.

    Returns:
        AsyncSession: SQLAlchemy async session

    Usage:
        @router.get("/artists")
        async def list_artists(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Artist))
            return result.scalars().all()
    """
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
