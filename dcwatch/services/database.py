import aiosqlite
from dcwatch.config import settings
from dcwatch.errors import PersistenceError
from dcwatch.models.items import Location, PersistedClip
from dcwatch.services.logger import logger
import json
from datetime import datetime, timezone
from pathlib import Path

INIT_SQL = """
CREATE TABLE IF NOT EXISTS locations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    city TEXT NOT NULL DEFAULT '',
    county TEXT NOT NULL DEFAULT '',
    state TEXT NOT NULL,
    latitude REAL,
    longitude REAL,
    clip_count INTEGER NOT NULL DEFAULT 1,
    first_seen TIMESTAMP NOT NULL,
    UNIQUE(city, county, state)
);

CREATE TABLE IF NOT EXISTS clips (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL UNIQUE,
    external_id TEXT UNIQUE,
    title TEXT,
    content TEXT,
    summary TEXT NOT NULL,
    source_type TEXT NOT NULL,
    source_name TEXT,
    published_at TIMESTAMP,
    bucket TEXT,
    duration_secs INTEGER,
    transcript TEXT,
    thumbnail_path TEXT,
    importance TEXT NOT NULL,
    topics JSON,
    companies JSON,
    gov_entities JSON,
    relevance_score INTEGER,
    location_id INTEGER,
    raw_data JSON,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(location_id) REFERENCES locations(id)
);

CREATE INDEX IF NOT EXISTS idx_clips_location ON clips(location_id);
"""

# One statement so the increment is atomic. COALESCE keeps stored
# coordinates when the fresh geocode came back empty.
UPSERT_LOCATION_SQL = """
INSERT INTO locations (city, county, state, latitude, longitude, clip_count, first_seen)
VALUES (?, ?, ?, ?, ?, 1, ?)
ON CONFLICT(city, county, state) DO UPDATE SET
    clip_count = clip_count + 1,
    latitude = COALESCE(excluded.latitude, latitude),
    longitude = COALESCE(excluded.longitude, longitude)
"""

class Database:
    def __init__(self, db_path: Path = None):
        self.db_path = db_path or settings.database_path

    async def init(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.executescript(INIT_SQL)
            await db.commit()
        logger.info(f"Database initialized at {self.db_path}")

    def get_connection(self):
        return aiosqlite.connect(self.db_path)

    async def clip_exists(self, url: str, external_id: str | None = None) -> bool:
        """True if a clip with this url, or this external id, is already stored."""
        async with self.get_connection() as conn:
            if external_id:
                cursor = await conn.execute(
                    "SELECT 1 FROM clips WHERE url = ? OR external_id = ? LIMIT 1", (url, external_id)
                )
            else:
                cursor = await conn.execute("SELECT 1 FROM clips WHERE url = ? LIMIT 1", (url,))
            row = await cursor.fetchone()
            return row is not None

    async def upsert_location(self, city: str, county: str, state: str,
                              latitude: float | None = None, longitude: float | None = None) -> Location:
        try:
            async with self.get_connection() as conn:
                location = await self._upsert_location(conn, city, county, state, latitude, longitude)
                await conn.commit()
                return location
        except aiosqlite.Error as e:
            raise PersistenceError(f"Location upsert failed for ({city!r}, {county!r}, {state}): {e}") from e

    async def get_location(self, city: str, county: str, state: str) -> Location | None:
        async with self.get_connection() as conn:
            return await self._select_location(conn, city, county, state)

    async def create_clip(self, clip: PersistedClip) -> int:
        """Inserts a new clip. Duplicates raise, they are never ignored."""
        try:
            async with self.get_connection() as conn:
                clip_id = await self._insert_clip(conn, clip)
                await conn.commit()
                return clip_id
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to save clip {clip.url}: {e}") from e

    async def save_clip_with_location(self, clip: PersistedClip, city: str, county: str, state: str,
                                      latitude: float | None = None, longitude: float | None = None) -> Location:
        """
        Upserts the clip's location and inserts the clip in one transaction.
        If the insert fails the location row and its clip_count are left as
        they were.
        """
        try:
            async with self.get_connection() as conn:
                try:
                    location = await self._upsert_location(conn, city, county, state, latitude, longitude)
                    clip.location_id = location.id
                    await self._insert_clip(conn, clip)
                    await conn.commit()
                except aiosqlite.Error:
                    await conn.rollback()
                    raise
        except aiosqlite.Error as e:
            clip.location_id = None
            raise PersistenceError(f"Failed to save clip {clip.url}: {e}") from e

        return location

    async def _upsert_location(self, conn, city, county, state, latitude, longitude) -> Location:
        now = datetime.now(timezone.utc).isoformat()
        await conn.execute(UPSERT_LOCATION_SQL, (city, county, state, latitude, longitude, now))
        location = await self._select_location(conn, city, county, state)
        if location is None:
            raise PersistenceError(f"Location ({city!r}, {county!r}, {state}) missing after upsert")
        return location

    async def _select_location(self, conn, city, county, state) -> Location | None:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(
            "SELECT * FROM locations WHERE city = ? AND county = ? AND state = ?",
            (city, county, state)
        )
        row = await cursor.fetchone()
        return Location(**dict(row)) if row else None

    async def _insert_clip(self, conn, clip: PersistedClip) -> int:
        cursor = await conn.execute(
            """
            INSERT INTO clips (url, external_id, title, content, summary, source_type, source_name,
                               published_at, bucket, duration_secs, transcript, thumbnail_path,
                               importance, topics, companies, gov_entities, relevance_score,
                               location_id, raw_data)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                clip.url, clip.external_id, clip.title, clip.content, clip.summary,
                clip.source_type, clip.source_name,
                clip.published_at.isoformat() if clip.published_at else None,
                clip.bucket.value if clip.bucket else None,
                clip.duration_secs, clip.transcript, clip.thumbnail_path,
                clip.importance, json.dumps(clip.topics), json.dumps(clip.companies),
                json.dumps(clip.gov_entities), clip.relevance_score, clip.location_id,
                json.dumps(clip.raw_data, default=str),
            )
        )
        return cursor.lastrowid

    async def count_clips(self) -> int:
        async with self.get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM clips")
            row = await cursor.fetchone()
            return row[0]

    async def get_recent_clips(self, limit: int = 20):
        async with self.get_connection() as conn:
            conn.row_factory = aiosqlite.Row
            cursor = await conn.execute(
                "SELECT * FROM clips ORDER BY created_at DESC, id DESC LIMIT ?", (limit,)
            )
            rows = await cursor.fetchall()
            return rows
