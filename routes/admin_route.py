"""FastAPI routes for managing routes (buses) and their weekly schedules."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.route_controller import (
	create_route,
	create_schedule,
	delete_route,
	delete_schedule,
	list_routes,
	list_schedules,
	update_route,
	update_schedule,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class RoutePayload(BaseModel):
	id: str
	name: str


class RouteUpdatePayload(BaseModel):
	name: Optional[str] = None


class SchedulePayload(BaseModel):
	route_id: str
	days_of_week: List[int]
	start_time: str
	end_time: str
	chat_name: str


class ScheduleUpdatePayload(BaseModel):
	days_of_week: Optional[List[int]] = None
	start_time: Optional[str] = None
	end_time: Optional[str] = None
	chat_name: Optional[str] = None
	is_active: Optional[bool] = None


@router.get("/routes")
async def list_routes_route(request: Request):
	try:
		return await list_routes(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/routes")
async def create_route_route(request: Request, payload: RoutePayload):
	try:
		return await create_route(request, payload.id, payload.name)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/routes/{route_id}")
async def update_route_route(request: Request, route_id: str, payload: RouteUpdatePayload):
	try:
		return await update_route(request, route_id, payload.name)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/routes/{route_id}")
async def delete_route_route(request: Request, route_id: str):
	try:
		return await delete_route(request, route_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/schedules")
async def list_schedules_route(request: Request, route_id: Optional[str] = None):
	try:
		return await list_schedules(request, route_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/schedules")
async def create_schedule_route(request: Request, payload: SchedulePayload):
	try:
		return await create_schedule(
			request,
			payload.route_id,
			payload.days_of_week,
			payload.start_time,
			payload.end_time,
			payload.chat_name,
		)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/schedules/{schedule_id}")
async def update_schedule_route(request: Request, schedule_id: str, payload: ScheduleUpdatePayload):
	try:
		return await update_schedule(request, schedule_id, payload.model_dump(exclude_unset=True))
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/schedules/{schedule_id}")
async def delete_schedule_route(request: Request, schedule_id: str):
	try:
		return await delete_schedule(request, schedule_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
