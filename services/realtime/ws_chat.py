"""Per-connection protocol handler for route chats."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from services.moderation import (
	REASON_INVALID,
	ProfanityFilter,
	classify_message,
	is_valid_username,
	sanitize_username,
)
from services.realtime import events
from services.realtime.connection_hub import ConnectionHub
from services.realtime.errors import (
	ChatError,
	NotFoundError,
	PolicyViolation,
	RateLimited,
	StateConflict,
	ValidationError,
)
from services.realtime.rate_limit import Cooldown, SlidingWindowLimiter
from services.realtime.session_store import SessionStore
from utils.settings import ChatSettings

logger = logging.getLogger(__name__)

KICK_REASON = "You were removed from the chat after repeated violations"


class ChatConnectionHandler:
	"""Drive one connection through ``disconnected -> joined(route) -> disconnected``.

	Each inbound frame maps to a single store transaction plus the frames it
	fans out, all under the room lock so every member sees the store's order.
	"""

	def __init__(
		self,
		store: SessionStore,
		hub: ConnectionHub,
		settings: ChatSettings,
		connection_id: str,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self.store = store
		self.hub = hub
		self.settings = settings
		self.connection_id = connection_id
		self.route_id: Optional[str] = None
		self.username: Optional[str] = None
		self.cooldown = Cooldown(settings.message_cooldown_ms, clock)
		self.report_limiter = SlidingWindowLimiter(settings.max_reports_per_minute, 60.0, clock)
		self.join_limiter = SlidingWindowLimiter(settings.max_join_attempts_per_minute, 60.0, clock)
		self.profanity = ProfanityFilter(settings.profanity_words)

	@property
	def joined(self) -> bool:
		return self.route_id is not None

	async def handle(self, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		message_type = payload.get("type") if isinstance(payload, dict) else None
		try:
			if message_type == "chat.join":
				await self.join(payload.get("route_id"), payload.get("username"))
			elif message_type == "message.send":
				await self.send_message(payload.get("text"))
			elif message_type == "message.report":
				await self.report_message(payload.get("message_id"))
			elif message_type == "chat.leave":
				await self.leave()
			else:
				raise ValidationError("unsupported message type")
		except ChatError as exc:
			await self.hub.send(self.connection_id, events.error_notice(exc.detail))
		except Exception:
			logger.exception("Unhandled error for connection %s on %r", self.connection_id, message_type)
			await self.hub.send(self.connection_id, events.error_notice("something went wrong"))

	async def join(self, route_id, username) -> None:
		if self.joined:
			raise StateConflict("already joined")
		if not self.join_limiter.try_acquire():
			raise RateLimited("too many join attempts")
		cleaned = sanitize_username(username)
		if not is_valid_username(cleaned, self.settings.min_username_length, self.settings.max_username_length):
			raise ValidationError("invalid username")
		route_id = str(route_id or "").strip()

		async with self._room_lock(route_id):
			session = self.store.get(route_id)
			if session is None:
				raise NotFoundError("no active chat")
			if self.store.add_participant(route_id, self.connection_id, cleaned) is None:
				raise StateConflict("cannot join")
			self.hub.join_room(route_id, self.connection_id)
			self.route_id, self.username = route_id, cleaned
			await self.hub.send(self.connection_id, events.chat_joined(session))
			await self.hub.broadcast(route_id, events.user_joined(cleaned), exclude=self.connection_id)
		logger.info("%s joined route %s", cleaned, route_id)

	async def send_message(self, text) -> None:
		if not self.joined:
			raise StateConflict("not connected")
		if not self.cooldown.try_acquire():
			raise RateLimited("please wait")

		result = classify_message(text, self.settings.max_message_length, self.profanity)
		if result.accepted:
			await self._publish(text)
		elif result.counts_as_violation:
			await self.hub.send(self.connection_id, events.error_notice(result.reason))
			await self._record_violation()
		elif result.reason == REASON_INVALID:
			raise ValidationError(result.reason)
		else:
			raise PolicyViolation(result.reason)

	async def report_message(self, message_id) -> None:
		if not self.joined:
			raise StateConflict("not connected")
		if not self.report_limiter.try_acquire():
			raise RateLimited("too many reports")
		route_id = self.route_id
		message_id = str(message_id or "")

		async with self._room_lock(route_id):
			message = self.store.report_message(route_id, message_id, self.connection_id)
			if message is None:
				raise NotFoundError("message not found")
			logger.info("Message %s reported on route %s (count: %d)", message_id, route_id, message.report_count)
			if message.report_count >= self.settings.report_delete_threshold:
				self.store.delete_message(route_id, message_id)
				await self.hub.broadcast(route_id, events.message_deleted(message_id))
				logger.info("Message %s auto-deleted after %d reports", message_id, message.report_count)
		await self.hub.send(self.connection_id, events.report_received(message_id))

	async def leave(self) -> None:
		"""Leave the current room; safe to call repeatedly."""
		route_id = self.route_id
		if route_id is None:
			return
		self.route_id, self.username = None, None

		try:
			lock = self._room_lock(route_id)
		except NotFoundError:
			return
		async with lock:
			self.hub.leave_room(route_id, self.connection_id)
			participant = self.store.remove_participant(route_id, self.connection_id)
			if participant is not None:
				await self.hub.broadcast(route_id, events.user_left(participant.username))
				logger.info("%s left route %s", participant.username, route_id)

	def _room_lock(self, route_id: str):
		"""Lock of a route with a live session. A gone session also ends our membership."""
		if self.store.get(route_id) is None:
			self.hub.leave_room(route_id, self.connection_id)
			if self.route_id == route_id:
				self.route_id, self.username = None, None
			raise NotFoundError("no active chat")
		return self.hub.room_lock(route_id)

	async def _publish(self, text: str) -> None:
		route_id = self.route_id
		async with self._room_lock(route_id):
			message = self.store.add_message(route_id, self.connection_id, text)
			if message is None:
				self.hub.leave_room(route_id, self.connection_id)
				self.route_id, self.username = None, None
				raise NotFoundError("no active chat")
			await self.hub.broadcast(route_id, events.new_message(message))

	async def _record_violation(self) -> None:
		route_id = self.route_id
		async with self._room_lock(route_id):
			count = self.store.record_violation(route_id, self.connection_id)
			if count < self.settings.profanity_kick_threshold:
				return
			username = self.username
			self.store.ban_user(route_id, self.connection_id)
			self.route_id, self.username = None, None
			await self.hub.send(self.connection_id, events.kicked(KICK_REASON))
			self.hub.leave_room(route_id, self.connection_id)
			await self.hub.disconnect(self.connection_id)
			await self.hub.broadcast(route_id, events.user_left(username))
		logger.info("%s kicked from route %s after %d violations", username, route_id, count)
