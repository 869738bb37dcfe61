"""Session views and actions for the admin surface and the landing page."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import HTTPException, Request

from dal.route_dal import RouteDAL
from services.realtime.events import session_detail, session_summary
from services.realtime.scheduler import SessionScheduler
from services.realtime.session_store import SessionStore
from utils.time_window import minutes_remaining


async def list_active_sessions(request: Request) -> List[Dict[str, Any]]:
	"""Return a summary row for every live session."""
	store: SessionStore = request.app.state.session_store
	return [session_summary(session) for session in store.all()]


async def get_session_detail(request: Request, route_id: str) -> Dict[str, Any]:
	"""Return the full snapshot of a route's live session."""
	store: SessionStore = request.app.state.session_store
	session = store.get(route_id)
	if session is None:
		raise HTTPException(status_code=404, detail="Session not found")
	return session_detail(session)


async def force_close(request: Request, route_id: str) -> Dict[str, Any]:
	"""Close a live session out of band: notify, evict, then wipe."""
	scheduler: SessionScheduler = request.app.state.scheduler
	if not await scheduler.force_close(route_id):
		raise HTTPException(status_code=404, detail="Session not found")
	return {"success": True}


async def chat_status(request: Request, route_id: str) -> Dict[str, Any]:
	"""Tell the landing page whether the route's chat is open right now."""
	route_dal: RouteDAL = request.app.state.route_dal
	route = await route_dal.get_route(route_id)
	if route is None:
		raise HTTPException(status_code=404, detail="Route not found")

	store: SessionStore = request.app.state.session_store
	session = store.get(route_id)
	result: Dict[str, Any] = {"isActive": session is not None, "routeId": route.id, "routeName": route.name}
	if session is not None:
		result.update(
			chatName=session.chat_name,
			sessionId=session.session_id,
			endsAt=session.ends_at.isoformat(),
			minutesRemaining=minutes_remaining(session.ends_at, store.now()),
		)
	return result
