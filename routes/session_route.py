"""Admin routes for monitoring and closing live sessions."""

from fastapi import APIRouter, HTTPException, Request

from controllers.session_controller import force_close, get_session_detail, list_active_sessions

router = APIRouter(prefix="/api/admin/sessions", tags=["sessions"])


@router.get("")
async def list_sessions_route(request: Request):
	try:
		return await list_active_sessions(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{route_id}")
async def session_detail_route(request: Request, route_id: str):
	try:
		return await get_session_detail(request, route_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{route_id}/close")
async def close_session_route(request: Request, route_id: str):
	try:
		return await force_close(request, route_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
