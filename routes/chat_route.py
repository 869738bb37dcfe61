from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from controllers.session_controller import chat_status

router = APIRouter()

CHAT_PAGE = Path(__file__).resolve().parent.parent / "public" / "chat" / "index.html"


@router.get("/bus/{route_id}", include_in_schema=False)
async def chat_landing_page(request: Request, route_id: str):
	"""Serve the chat page a rider reaches by scanning the route's QR code."""
	if await request.app.state.route_dal.get_route(route_id) is None:
		raise HTTPException(status_code=404, detail="Route not found")
	if not CHAT_PAGE.exists():
		raise HTTPException(status_code=404, detail="Frontend not found")
	return FileResponse(CHAT_PAGE)


@router.get("/api/chat/status/{route_id}")
async def chat_status_route(request: Request, route_id: str):
	"""Report whether the route's chat is open and when it ends."""
	try:
		return await chat_status(request, route_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
