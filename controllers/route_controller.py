from fastapi import Request, HTTPException
from typing import Dict, Any, List, Optional
from dataclasses import asdict

from dal.route_dal import RouteDAL
from models.route_record import RouteRecord, ScheduleRecord
from services.realtime.scheduler import SessionScheduler
from utils.time_window import time_to_minutes


def _route_dal(request: Request) -> RouteDAL:
    return request.app.state.route_dal


def validate_window(days_of_week: List[int], start_time: str, end_time: str) -> None:
    """Reject malformed weekly windows.

    Raises:
        HTTPException(400) for weekdays outside 0-6, bad "HH:MM" strings, or
        windows whose end is not after their start (crossing midnight is not
        supported).
    """
    if not days_of_week or any(d < 0 or d > 6 for d in days_of_week):
        raise HTTPException(status_code=400, detail="days_of_week must hold weekday numbers 0-6")
    try:
        start, end = time_to_minutes(start_time), time_to_minutes(end_time)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if end <= start:
        raise HTTPException(status_code=400, detail="end_time must be later than start_time on the same day")


async def list_routes(request: Request) -> List[Dict[str, Any]]:
    return [asdict(r) for r in await _route_dal(request).list_routes()]


async def create_route(request: Request, route_id: str, name: str) -> Dict[str, Any]:
    route_id, name = route_id.strip(), name.strip()
    if not route_id or not name:
        raise HTTPException(status_code=400, detail="Route id and name are required")
    try:
        record = await _route_dal(request).create_route(RouteRecord(id=route_id, name=name))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return asdict(record)


async def update_route(request: Request, route_id: str, name: Optional[str]) -> Dict[str, Any]:
    record = await _route_dal(request).update_route(route_id, name=name.strip() if name else None)
    if record is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return asdict(record)


async def delete_route(request: Request, route_id: str) -> Dict[str, Any]:
    """Delete a route with its schedules, then close its live chat.

    Rows go first so no scheduler tick can reopen the chat after it closes.
    """
    if not await _route_dal(request).delete_route(route_id):
        raise HTTPException(status_code=404, detail="Route not found")
    scheduler: SessionScheduler = request.app.state.scheduler
    await scheduler.force_close(route_id)
    return {"success": True}


async def list_schedules(request: Request, route_id: Optional[str] = None) -> List[Dict[str, Any]]:
    dal = _route_dal(request)
    schedules = await dal.list_schedules_for_route(route_id) if route_id else await dal.list_schedules()
    return [asdict(s) for s in schedules]


async def create_schedule(
    request: Request,
    route_id: str,
    days_of_week: List[int],
    start_time: str,
    end_time: str,
    chat_name: str,
) -> Dict[str, Any]:
    """Create a weekly window for an existing route.

    Changes take effect on the scheduler's next tick; a live session keeps
    the name and end time it was opened with.
    """
    validate_window(days_of_week, start_time, end_time)
    if not chat_name.strip():
        raise HTTPException(status_code=400, detail="chat_name is required")
    dal = _route_dal(request)
    if await dal.get_route(route_id) is None:
        raise HTTPException(status_code=404, detail="Route not found")
    record = await dal.create_schedule(
        ScheduleRecord(
            id=None,
            route_id=route_id,
            days_of_week=days_of_week,
            start_time=start_time,
            end_time=end_time,
            chat_name=chat_name.strip(),
        )
    )
    return asdict(record)


async def update_schedule(request: Request, schedule_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    dal = _route_dal(request)
    current = await dal.get_schedule(schedule_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Schedule not found")

    def merged(field: str) -> Any:
        value = updates.get(field)
        return getattr(current, field) if value is None else value

    validate_window(merged("days_of_week"), merged("start_time"), merged("end_time"))
    record = await dal.update_schedule(schedule_id, **updates)
    return asdict(record)


async def delete_schedule(request: Request, schedule_id: str) -> Dict[str, Any]:
    if not await _route_dal(request).delete_schedule(schedule_id):
        raise HTTPException(status_code=404, detail="Schedule not found")
    return {"success": True}
