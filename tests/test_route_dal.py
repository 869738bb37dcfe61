"""
Tests for the SQLite-backed route and schedule DAL.
"""

import pytest

from dal.route_dal import RouteDAL
from models.route_record import RouteRecord, ScheduleRecord
from utils.database_init import AsyncDatabaseInitializer


@pytest.fixture
def dal(tmp_path):
    return RouteDAL(AsyncDatabaseInitializer(tmp_path))


def _schedule(route_id="42", **overrides):
    fields = dict(
        id=None,
        route_id=route_id,
        days_of_week=[3, 1, 1],
        start_time="08:00",
        end_time="09:00",
        chat_name="Morning",
    )
    fields.update(overrides)
    return ScheduleRecord(**fields)


class TestRoutes:

    @pytest.mark.asyncio
    async def test_create_get_list(self, dal):
        created = await dal.create_route(RouteRecord(id="42", name="Line 42"))
        assert created.created_at is not None
        assert await dal.get_route("42") == created
        assert [r.id for r in await dal.list_routes()] == ["42"]
        assert await dal.get_route("nope") is None

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, dal):
        await dal.create_route(RouteRecord(id="42", name="Line 42"))
        with pytest.raises(ValueError):
            await dal.create_route(RouteRecord(id="42", name="Again"))

    @pytest.mark.asyncio
    async def test_update_and_delete_cascade(self, dal):
        await dal.create_route(RouteRecord(id="42", name="Line 42"))
        await dal.create_schedule(_schedule())

        renamed = await dal.update_route("42", name="Express 42")
        assert renamed.name == "Express 42"
        assert await dal.update_route("nope", name="x") is None

        assert await dal.delete_route("42") is True
        assert await dal.list_schedules() == []
        assert await dal.delete_route("42") is False


class TestSchedules:

    @pytest.mark.asyncio
    async def test_create_normalizes_days(self, dal):
        await dal.create_route(RouteRecord(id="42", name="Line 42"))
        created = await dal.create_schedule(_schedule())
        assert created.id
        assert created.days_of_week == [1, 3]
        assert created.is_active is True
        assert await dal.get_schedule(created.id) == created

    @pytest.mark.asyncio
    async def test_list_by_route(self, dal):
        for route_id in ("42", "7"):
            await dal.create_route(RouteRecord(id=route_id, name=f"Line {route_id}"))
            await dal.create_schedule(_schedule(route_id))
        assert len(await dal.list_schedules()) == 2
        assert [s.route_id for s in await dal.list_schedules_for_route("7")] == ["7"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, dal):
        await dal.create_route(RouteRecord(id="42", name="Line 42"))
        created = await dal.create_schedule(_schedule())

        updated = await dal.update_schedule(created.id, end_time="10:00", is_active=False)
        assert updated.end_time == "10:00"
        assert updated.is_active is False
        assert updated.start_time == "08:00"

        assert await dal.delete_schedule(created.id) is True
        assert await dal.get_schedule(created.id) is None
        assert await dal.update_schedule(created.id, chat_name="x") is None


class TestDatabaseInitializer:

    def test_requires_a_directory(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DATABASE_DIR", raising=False)
        with pytest.raises(RuntimeError):
            AsyncDatabaseInitializer()

        not_a_dir = tmp_path / "file.txt"
        not_a_dir.write_text("x")
        with pytest.raises(RuntimeError):
            AsyncDatabaseInitializer(not_a_dir)

    def test_falls_back_to_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "nested"))
        initializer = AsyncDatabaseInitializer()
        assert initializer.db_dir == tmp_path / "nested"
        assert initializer.db_dir.is_dir()

    @pytest.mark.asyncio
    async def test_startup_wipes_previous_rows(self, tmp_path):
        first = RouteDAL(AsyncDatabaseInitializer(tmp_path))
        await first.create_route(RouteRecord(id="42", name="Line 42"))

        restarted = AsyncDatabaseInitializer(tmp_path)
        assert not restarted.initialized
        assert await RouteDAL(restarted).list_routes() == []
        assert restarted.initialized
