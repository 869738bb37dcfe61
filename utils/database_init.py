import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import aiosqlite

DB_FILENAME = "bus_chat.db"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS ROUTE (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        created_at INTEGER
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS SCHEDULE (
        id TEXT PRIMARY KEY,
        route_id TEXT NOT NULL REFERENCES ROUTE(id) ON DELETE CASCADE,
        days_of_week TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        chat_name TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at INTEGER
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_schedule_route ON SCHEDULE(route_id)",
)


def resolve_database_dir(db_dir: Optional[Union[Path, str]] = None) -> Path:
    """Pick the storage directory from ``db_dir`` or DATABASE_DIR and create it.

    Raises:
        RuntimeError: when neither is set, when the path names a regular
        file, or when the directory cannot be created.
    """
    raw = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR", "")
    if not raw.strip():
        raise RuntimeError("DATABASE_DIR must name a writable directory for the route database")

    path = Path(raw).expanduser()
    if path.exists() and not path.is_dir():
        raise RuntimeError(f"DATABASE_DIR={raw!r} is a file, expected a directory")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuntimeError(f"Cannot create database directory {path}") from exc
    return path


class AsyncDatabaseInitializer:
    """
    Own the SQLite file that stores routes and schedules.

    Nothing in it outlives the process: the first `ensure_database()` on an
    instance removes any file left by an earlier run and recreates the ROUTE
    and SCHEDULE tables. Later calls return immediately, so `connection()`
    can call it on every use.
    """

    def __init__(self, db_dir: Optional[Union[Path, str]] = None) -> None:
        self.db_dir = resolve_database_dir(db_dir)
        self.db_path = self.db_dir / DB_FILENAME
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure_database(self) -> None:
        if self._initialized:
            return

        try:
            self.db_path.unlink(missing_ok=True)
        except OSError as exc:
            raise RuntimeError(f"Cannot remove stale database {self.db_path}") from exc

        # A freshly unlinked path can briefly fail to reopen on some filesystems.
        for attempt in (1, 2, 3):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    for statement in _SCHEMA:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                if attempt == 3:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection with foreign keys on, so schedules follow their route."""
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            await conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        finally:
            await conn.close()
