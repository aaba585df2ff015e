import asyncio
import os
import sys
from dotenv import load_dotenv

# Add the 'Backend' directory to the system path so we can import the 'kollector' package.
backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)

# Load the .env file from the project root to get the DATABASE_URL.
project_root = os.path.dirname(backend_dir)
load_dotenv(os.path.join(project_root, ".env"))
print(" Environment loaded.")

from kollector.services.database import engine, Base

# Import all models so SQLAlchemy knows about them and can create the tables.
from kollector.models.artist import Artist
from kollector.models.country import Country
from kollector.models.format import Format
from kollector.models.genre import Genre
from kollector.models.label import Label
from kollector.models.packaging import Packaging
from kollector.models.store import Store
from kollector.models.music_release import MusicRelease
from kollector.models.now_playing import NowPlaying
from kollector.models.kollection import Kollection
from kollector.models.release_list import ReleaseList
from kollector.models.list_release import list_release
print(" Application modules imported successfully.")


async def create_all_tables():
    """Connects to the database and creates all tables for the imported models."""
    print("\nConnecting to the database to create tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print(" All tables created successfully!")
    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(create_all_tables())
