import datetime
import json
import logging
import os
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.config import settings
from kollector.models.artist import Artist
from kollector.models.country import Country
from kollector.models.format import Format
from kollector.models.genre import Genre
from kollector.models.label import Label
from kollector.models.music_release import MusicRelease
from kollector.models.packaging import Packaging
from kollector.models.store import Store
from kollector.schemas.music_release import Images, Link, Media, PurchaseInfo
from kollector.services.json_fields import dump_document, dump_ids, load_ids

logger = logging.getLogger(__name__)

# table -> (model, file name, container key). The files come from an older
# export, hence "countrys".
LOOKUP_FILES = {
    "countries": (Country, "countrys.json", "countrys"),
    "stores": (Store, "stores.json", "stores"),
    "formats": (Format, "formats.json", "formats"),
    "genres": (Genre, "genres.json", "genres"),
    "labels": (Label, "labels.json", "labels"),
    "artists": (Artist, "artists.json", "artists"),
    "packagings": (Packaging, "packagings.json", "packagings"),
}

MUSIC_RELEASES_FILE = "musicreleases.json"
RELEASE_BATCH_SIZE = 100


def _get(data: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Case-insensitive dict lookup; the exports use PascalCase keys."""
    wanted = key.lower()
    for k, v in data.items():
        if isinstance(k, str) and k.lower() == wanted:
            return v
    return default


def read_lookup_file(path: str, container: str) -> List[Dict[str, Any]]:
    """Return [{"id": .., "name": ..}] rows from a lookup export, skipping bad rows."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    rows = _get(data, container, []) if isinstance(data, dict) else []
    items = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        name = (_get(row, "name") or "").strip()
        if not name:
            logger.warning(f"Skipping {container} row without a name: {row}")
            continue
        items.append({"id": _get(row, "id"), "name": name})
    return items


def parse_date(value: Any) -> Optional[datetime.datetime]:
    """Accepts ISO dates/datetimes and bare years ("1977")."""
    if value in (None, ""):
        return None
    text = str(value).strip()
    try:
        if len(text) == 4 and text.isdigit():
            return datetime.datetime(int(text), 1, 1, tzinfo=datetime.timezone.utc)
        parsed = datetime.datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Could not parse date {text!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _optional_id(value: Any) -> Optional[int]:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _id_list(value: Any) -> List[int]:
    # Exports hold either a real array or the stored text form "[1,2]"
    if isinstance(value, str):
        return load_ids(value)
    if isinstance(value, list):
        return [i for i in (_optional_id(v) for v in value) if i]
    return []


TRUE_STRINGS = ("true", "1", "yes", "y")


def _as_bool(value: Any) -> bool:
    # Hand-edited exports write booleans as "false"/"true"
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def release_from_export(row: Dict[str, Any]) -> MusicRelease:
    """Map one entry of musicreleases.json onto a MusicRelease."""
    length = _get(row, "LengthInSeconds")
    purchase = _get(row, "PurchaseInfo")
    images = _get(row, "Images")
    links = _get(row, "Links") or []
    media = _get(row, "Media") or []
    release = MusicRelease(
        id=int(_get(row, "Id")),
        title=(_get(row, "Title") or "").strip()[:300],
        release_year=parse_date(_get(row, "ReleaseYear")),
        orig_release_year=parse_date(_get(row, "OrigReleaseYear")),
        artists=dump_ids(_id_list(_get(row, "Artists"))),
        genres=dump_ids(_id_list(_get(row, "Genres"))),
        live=_as_bool(_get(row, "Live", False)),
        label_id=_optional_id(_get(row, "LabelId")),
        country_id=_optional_id(_get(row, "CountryId")),
        format_id=_optional_id(_get(row, "FormatId")),
        packaging_id=_optional_id(_get(row, "PackagingId")),
        label_number=_get(row, "LabelNumber") or None,
        length_in_seconds=int(length) if str(length or "").isdigit() and int(length) > 0 else None,
        upc=_get(row, "Upc") or None,
        purchase_info=dump_document(PurchaseInfo.model_validate(purchase)) if isinstance(purchase, dict) else None,
        images=dump_document(Images.model_validate(images)) if isinstance(images, dict) else None,
        links=dump_document([Link.model_validate(link) for link in links if isinstance(link, dict)]),
        media=dump_document([Media.model_validate(m) for m in media if isinstance(m, dict)]),
    )
    date_added = parse_date(_get(row, "DateAdded"))
    if date_added:
        release.date_added = date_added
    last_modified = parse_date(_get(row, "LastModified"))
    if last_modified:
        release.last_modified = last_modified
    return release


class SeedingService:
    """
    Loads the JSON exports in DATA_PATH into empty tables. A table that
    already has rows is left alone, so seeding is safe to repeat.
    """

    def __init__(self, db_session: AsyncSession, data_path: Optional[str] = None):
        self.db = db_session
        self.data_path = data_path or settings.DATA_PATH

    async def seed_lookup_data(self) -> Dict[str, int]:
        logger.info(f"Seeding lookup data from {self.data_path}")
        seeded = {}
        for table in LOOKUP_FILES:
            seeded[table] = await self.seed_table(table)
        logger.info(f"Lookup seeding finished: {seeded}")
        return seeded

    async def seed_table(self, table: str) -> int:
        if table not in LOOKUP_FILES:
            raise KeyError(f"Unknown lookup table '{table}'")
        model, file_name, container = LOOKUP_FILES[table]
        return await self._seed_lookup(model, os.path.join(self.data_path, file_name), container)

    async def seed_music_releases(self) -> int:
        path = os.path.join(self.data_path, MUSIC_RELEASES_FILE)
        if not os.path.exists(path):
            logger.warning(f"Music releases file not found at {path}")
            return 0

        with open(path, "r", encoding="utf-8") as f:
            rows = json.load(f)
        if not isinstance(rows, list) or not rows:
            logger.warning(f"No music releases found in {path}")
            return 0

        existing = set((await self.db.execute(select(MusicRelease.id))).scalars().all())
        imported = 0
        for start in range(0, len(rows), RELEASE_BATCH_SIZE):
            batch = rows[start:start + RELEASE_BATCH_SIZE]
            for row in batch:
                if not isinstance(row, dict) or _get(row, "Id") is None:
                    continue
                try:
                    release = release_from_export(row)
                except (TypeError, ValueError) as e:
                    logger.warning(f"Skipping music release {_get(row, 'Id')}: {e}")
                    continue
                if release.id in existing or not release.title:
                    continue
                self.db.add(release)
                existing.add(release.id)
                imported += 1
            await self.db.commit()
            logger.info(f"Imported batch {start // RELEASE_BATCH_SIZE + 1}: {imported}/{len(rows)} releases so far")

        await self._sync_sequence(MusicRelease)
        logger.info(f"Imported {imported} music releases")
        return imported

    async def _seed_lookup(self, model: Type, path: str, container: str) -> int:
        name = model.__tablename__
        if await self.db.scalar(select(func.count()).select_from(model)):
            logger.info(f"{name} already has data, skipping")
            return 0
        if not os.path.exists(path):
            logger.warning(f"Seed file for {name} not found at {path}")
            return 0

        rows = read_lookup_file(path, container)
        max_length = model.__table__.c.name.type.length
        for row in rows:
            entity = model(name=row["name"][:max_length])
            if _optional_id(row["id"]):
                entity.id = int(row["id"])
            self.db.add(entity)
        await self.db.commit()
        await self._sync_sequence(model)
        logger.info(f"Seeded {len(rows)} {name}")
        return len(rows)

    async def _sync_sequence(self, model: Type) -> None:
        # Explicit ids bypass the Postgres sequence; move it past the highest id
        if self.db.get_bind().dialect.name != "postgresql":
            return
        table = model.__tablename__
        await self.db.execute(
            select(func.setval(
                func.pg_get_serial_sequence(table, "id"),
                func.coalesce(select(func.max(model.id)).scalar_subquery(), 0) + 1,
                False,
            ))
        )
        await self.db.commit()
