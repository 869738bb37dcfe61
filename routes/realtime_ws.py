"""WebSocket endpoint for route chats."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.realtime import events
from services.realtime.connection_hub import ConnectionHub, is_ws_connected
from services.realtime.ws_chat import ChatConnectionHandler

router = APIRouter()


def _require_hub(websocket: WebSocket) -> ConnectionHub:
	hub = getattr(websocket.app.state, "connection_hub", None)
	if hub is None:
		raise HTTPException(status_code=500, detail="Connection hub unavailable")
	return hub


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, hub: ConnectionHub = Depends(_require_hub)):
	"""Carry one rider's join/send/report/leave frames for a route chat."""
	await websocket.accept()
	connection_id = hub.register(websocket)
	handler = ChatConnectionHandler(
		websocket.app.state.session_store,
		hub,
		websocket.app.state.settings,
		connection_id,
	)
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			except Exception:
				if not is_ws_connected(websocket):
					break
				await hub.send(connection_id, events.error_notice("Invalid websocket frame"))
				continue
			try:
				payload = json.loads(raw)
			except Exception:
				await hub.send(connection_id, events.error_notice("Payload must be JSON"))
				continue
			if not isinstance(payload, dict):
				await hub.send(connection_id, events.error_notice("Payload must be a JSON object"))
				continue
			await handler.handle(payload)
	finally:
		await handler.leave()
		hub.unregister(connection_id)
	try:
		await websocket.close()
	except Exception:
		pass
