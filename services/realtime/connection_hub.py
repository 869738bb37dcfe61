"""Room membership and best-effort fan-out over websockets."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Set
from uuid import uuid4

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


def is_ws_connected(websocket: WebSocket) -> bool:
	return (
		websocket.client_state == WebSocketState.CONNECTED
		and websocket.application_state == WebSocketState.CONNECTED
	)


class ConnectionHub:
	"""Track sockets by connection id and group them into per-route rooms.

	Delivery is at most once: a failed send is logged and the connection is
	dropped from its rooms, never retried.
	"""

	def __init__(self) -> None:
		self._sockets: Dict[str, WebSocket] = {}
		self._rooms: Dict[str, Set[str]] = {}
		self._room_locks: Dict[str, asyncio.Lock] = {}

	def register(self, websocket: WebSocket) -> str:
		"""Assign a fresh connection id; reconnects never reuse an old one."""
		connection_id = uuid4().hex
		self._sockets[connection_id] = websocket
		return connection_id

	def unregister(self, connection_id: str) -> None:
		self._sockets.pop(connection_id, None)
		for members in self._rooms.values():
			members.discard(connection_id)

	def room_lock(self, room: str) -> asyncio.Lock:
		"""Lock serializing store mutation plus fan-out for one room."""
		lock = self._room_locks.get(room)
		if lock is None:
			lock = self._room_locks[room] = asyncio.Lock()
		return lock

	def drop_room_lock(self, room: str) -> None:
		"""Forget a closed room's lock; only live sessions keep one."""
		self._room_locks.pop(room, None)

	def join_room(self, room: str, connection_id: str) -> None:
		self._rooms.setdefault(room, set()).add(connection_id)

	def leave_room(self, room: str, connection_id: str) -> None:
		members = self._rooms.get(room)
		if members is None:
			return
		members.discard(connection_id)
		if not members:
			del self._rooms[room]

	def members(self, room: str) -> List[str]:
		return sorted(self._rooms.get(room, ()))

	async def send(self, connection_id: str, payload: Dict[str, Any]) -> bool:
		websocket = self._sockets.get(connection_id)
		if websocket is None:
			return False
		try:
			await websocket.send_text(json.dumps(payload))
			return True
		except Exception as exc:
			logger.warning("Dropping connection %s after failed send: %s", connection_id, exc)
			for members in self._rooms.values():
				members.discard(connection_id)
			return False

	async def broadcast(self, room: str, payload: Dict[str, Any], exclude: Optional[str] = None) -> int:
		"""Send ``payload`` to every member of ``room``; returns successful sends."""
		delivered = 0
		for connection_id in self._targets(self._rooms.get(room, ()), exclude):
			if await self.send(connection_id, payload):
				delivered += 1
		return delivered

	async def disconnect(self, connection_id: str, code: int = 1000) -> None:
		"""Close the socket and drop it from every room."""
		for members in self._rooms.values():
			members.discard(connection_id)
		websocket = self._sockets.get(connection_id)
		if websocket is None:
			return
		try:
			await websocket.close(code=code)
		except Exception as exc:
			logger.debug("Close failed for connection %s: %s", connection_id, exc)

	async def evict_room(self, room: str) -> int:
		"""Disconnect every member of ``room`` and forget the room."""
		members = self._rooms.pop(room, set())
		for connection_id in sorted(members):
			await self.disconnect(connection_id)
		return len(members)

	@staticmethod
	def _targets(members: Iterable[str], exclude: Optional[str]) -> List[str]:
		return [m for m in sorted(members) if m != exclude]
