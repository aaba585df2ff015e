"""
Seed the database from the JSON exports in DATA_PATH.

    python scripts/seed_data.py                 # lookups, then music releases
    python scripts/seed_data.py --only lookups
    python scripts/seed_data.py --data-path ./data --only music-releases
"""
import asyncio
import logging
import os
import sys

import click
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

from kollector.services.database import SessionLocal, engine
from kollector.services.seeding_service import SeedingService


async def run_seed(only: str, data_path=None, session_factory=SessionLocal) -> dict:
    """Run the requested seeding steps and return counts per table."""
    seeded = {}
    async with session_factory() as session:
        service = SeedingService(session, data_path=data_path)
        if only in ("all", "lookups"):
            seeded.update(await service.seed_lookup_data())
        if only in ("all", "music-releases"):
            seeded["music_releases"] = await service.seed_music_releases()
    return seeded


@click.command()
@click.option("--only", type=click.Choice(["all", "lookups", "music-releases"]), default="all",
              show_default=True, help="Which data to seed.")
@click.option("--data-path", type=click.Path(file_okay=False), default=None,
              help="Directory holding the JSON exports (defaults to DATA_PATH).")
def main(only, data_path):
    """Load lookup tables and music releases into empty tables."""
    logging.basicConfig(level=logging.INFO)
    if data_path and not os.path.isdir(data_path):
        raise click.ClickException(f"Data path not found: {data_path}")

    async def _run():
        try:
            return await run_seed(only, data_path)
        finally:
            await engine.dispose()

    seeded = asyncio.run(_run())
    for table, count in seeded.items():
        click.echo(f" {table}: {count}")
    click.echo(f"Seeded {sum(seeded.values())} rows.")


if __name__ == "__main__":
    main()
