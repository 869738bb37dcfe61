"""Async Data Access Layer for the ROUTE and SCHEDULE tables.

Provides RouteDAL with the CRUD operations behind the admin surface and the
lookups the scheduler consumes (`get_route`, `list_schedules`,
`list_schedules_for_route`).
"""

from __future__ import annotations

import json
import time
from typing import List, Optional, Sequence
from uuid import uuid4

from models.route_record import RouteRecord, ScheduleRecord
from utils.database_init import AsyncDatabaseInitializer


class RouteDAL:
    """Data access layer for routes and their weekly schedules.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _ROUTE_COLUMNS = "id, name, created_at"
    _SCHEDULE_COLUMNS = "id, route_id, days_of_week, start_time, end_time, chat_name, is_active, created_at"

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    # Routes

    async def create_route(self, record: RouteRecord) -> RouteRecord:
        """Insert a new ROUTE row and return it with `created_at` filled in.

        Raises:
            ValueError: If a route with the same id already exists.
        """
        created_at = record.created_at or int(time.time())
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT 1 FROM ROUTE WHERE id = ?", (record.id,))
            if await cur.fetchone():
                raise ValueError(f"Route {record.id} already exists")
            await conn.execute(
                "INSERT INTO ROUTE (id, name, created_at) VALUES (?, ?, ?)",
                (record.id, record.name, created_at),
            )
            await conn.commit()
        return RouteRecord(id=record.id, name=record.name, created_at=created_at)

    async def get_route(self, route_id: str) -> Optional[RouteRecord]:
        """Return the RouteRecord for `route_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._ROUTE_COLUMNS} FROM ROUTE WHERE id = ?", (route_id,)
            )
            row = await cur.fetchone()
            return self._row_to_route(row) if row else None

    async def list_routes(self) -> List[RouteRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {self._ROUTE_COLUMNS} FROM ROUTE ORDER BY id")
            rows = await cur.fetchall()
            return [self._row_to_route(r) for r in rows]

    async def update_route(self, route_id: str, *, name: Optional[str] = None) -> Optional[RouteRecord]:
        """Rename a route. Returns the updated record, or None if missing."""
        if name is not None:
            async with self._db.connection() as conn:
                await conn.execute("UPDATE ROUTE SET name = ? WHERE id = ?", (name, route_id))
                await conn.commit()
        return await self.get_route(route_id)

    async def delete_route(self, route_id: str) -> bool:
        """Delete a route and its schedules. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM SCHEDULE WHERE route_id = ?", (route_id,))
            await conn.execute("DELETE FROM ROUTE WHERE id = ?", (route_id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    # Schedules

    async def create_schedule(self, record: ScheduleRecord) -> ScheduleRecord:
        """Insert a new SCHEDULE row and return it with its generated id."""
        schedule_id = record.id or uuid4().hex
        created_at = record.created_at or int(time.time())
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO SCHEDULE ({self._SCHEDULE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    schedule_id,
                    record.route_id,
                    json.dumps(sorted(set(record.days_of_week))),
                    record.start_time,
                    record.end_time,
                    record.chat_name,
                    int(record.is_active),
                    created_at,
                ),
            )
            await conn.commit()
        return await self.get_schedule(schedule_id)

    async def get_schedule(self, schedule_id: str) -> Optional[ScheduleRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._SCHEDULE_COLUMNS} FROM SCHEDULE WHERE id = ?", (schedule_id,)
            )
            row = await cur.fetchone()
            return self._row_to_schedule(row) if row else None

    async def list_schedules(self) -> List[ScheduleRecord]:
        """Return every schedule, oldest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._SCHEDULE_COLUMNS} FROM SCHEDULE ORDER BY created_at, id"
            )
            rows = await cur.fetchall()
            return [self._row_to_schedule(r) for r in rows]

    async def list_schedules_for_route(self, route_id: str) -> List[ScheduleRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._SCHEDULE_COLUMNS} FROM SCHEDULE WHERE route_id = ? ORDER BY created_at, id",
                (route_id,),
            )
            rows = await cur.fetchall()
            return [self._row_to_schedule(r) for r in rows]

    async def update_schedule(
        self,
        schedule_id: str,
        *,
        days_of_week: Optional[List[int]] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        chat_name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[ScheduleRecord]:
        """Update fields of a SCHEDULE row. Returns the updated record, or None if missing."""
        updates = {
            "days_of_week": json.dumps(sorted(set(days_of_week))) if days_of_week is not None else None,
            "start_time": start_time, "end_time": end_time, "chat_name": chat_name,
            "is_active": int(is_active) if is_active is not None else None,
        }
        fields = [f"{col} = ?" for col, val in updates.items() if val is not None]

        if fields:
            params = [val for val in updates.values() if val is not None]
            params.append(schedule_id)
            async with self._db.connection() as conn:
                await conn.execute(f"UPDATE SCHEDULE SET {', '.join(fields)} WHERE id = ?", tuple(params))
                await conn.commit()
        return await self.get_schedule(schedule_id)

    async def delete_schedule(self, schedule_id: str) -> bool:
        """Delete SCHEDULE row by id. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM SCHEDULE WHERE id = ?", (schedule_id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_route(row: Sequence[object]) -> RouteRecord:
        return RouteRecord(id=row[0], name=row[1], created_at=row[2])

    @staticmethod
    def _row_to_schedule(row: Sequence[object]) -> ScheduleRecord:
        """Convert a DB row tuple into a ScheduleRecord."""
        return ScheduleRecord(
            id=row[0],
            route_id=row[1],
            days_of_week=[int(d) for d in json.loads(row[2] or "[]")],
            start_time=row[3],
            end_time=row[4],
            chat_name=row[5],
            is_active=bool(row[6]),
            created_at=row[7],
        )
