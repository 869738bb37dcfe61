"""In-memory store of live route chats, at most one per route."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, tzinfo
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from models.route_record import RouteRecord, ScheduleRecord
from models.session_models import ChatMessage, ChatSession, Participant
from utils.time_window import schedule_end_time

logger = logging.getLogger(__name__)


class SessionStore:
	"""Own every live ChatSession, keyed by route id.

	All mutation of a session goes through this class and runs under one
	lock, so operations on a route are applied in the order they arrive.
	Every method checks that the session exists first; a missing session is
	a quiet ``None``/``False`` rather than an exception.
	"""

	def __init__(self, tz: tzinfo, clock: Optional[Callable[[], datetime]] = None) -> None:
		self.tz = tz
		self._clock = clock or (lambda: datetime.now(self.tz))
		self._sessions: Dict[str, ChatSession] = {}
		self._memberships: Dict[str, str] = {}
		self._lock = threading.RLock()

	def now(self) -> datetime:
		return self._clock()

	def get(self, route_id: str) -> Optional[ChatSession]:
		with self._lock:
			return self._sessions.get(route_id)

	def all(self) -> List[ChatSession]:
		with self._lock:
			return list(self._sessions.values())

	def open(self, route: RouteRecord, schedule: ScheduleRecord) -> ChatSession:
		"""Open a session for ``route`` or return the one already live."""
		with self._lock:
			existing = self._sessions.get(route.id)
			if existing is not None:
				return existing
			now = self.now()
			session = ChatSession(
				session_id=uuid4().hex,
				route_id=route.id,
				route_name=route.name,
				chat_name=schedule.chat_name,
				started_at=now,
				ends_at=schedule_end_time(schedule.end_time, now, self.tz),
			)
			self._sessions[route.id] = session
		logger.info("Session %s opened for route %s (%s)", session.session_id, route.id, session.chat_name)
		return session

	def close(self, route_id: str) -> bool:
		"""Wipe and remove the route's session. Returns False when none is live."""
		with self._lock:
			session = self._sessions.pop(route_id, None)
			if session is None:
				return False
			for connection_id in session.participants:
				if self._memberships.get(connection_id) == route_id:
					del self._memberships[connection_id]
			session.clear()
		logger.info("Session %s closed for route %s", session.session_id, route_id)
		return True

	def add_participant(self, route_id: str, connection_id: str, username: str) -> Optional[Participant]:
		"""Join ``connection_id``; None when no session, banned, or joined elsewhere."""
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None or connection_id in session.banned:
				return None
			current = self._memberships.get(connection_id)
			if current is not None and current != route_id:
				return None
			participant = Participant(connection_id=connection_id, username=username, joined_at=self.now())
			session.participants[connection_id] = participant
			self._memberships[connection_id] = route_id
			return participant

	def get_participant(self, route_id: str, connection_id: str) -> Optional[Participant]:
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return None
			return session.participants.get(connection_id)

	def remove_participant(self, route_id: str, connection_id: str) -> Optional[Participant]:
		"""Drop a participant, keeping the messages they already sent."""
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return None
			participant = session.participants.pop(connection_id, None)
			if participant is not None:
				self._memberships.pop(connection_id, None)
			return participant

	def add_message(self, route_id: str, connection_id: str, text: str) -> Optional[ChatMessage]:
		"""Record a message from a current participant."""
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return None
			participant = session.participants.get(connection_id)
			if participant is None:
				return None
			message = ChatMessage(
				id=uuid4().hex,
				connection_id=connection_id,
				username=participant.username,
				text=text,
				created_at=self.now(),
			)
			session.messages.append(message)
			return message

	def report_message(self, route_id: str, message_id: str, reporter_id: str) -> Optional[ChatMessage]:
		"""Count ``reporter_id`` against a message once; repeats are no-ops."""
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return None
			message = session.find_message(message_id)
			if message is None:
				return None
			reporters = session.reports.setdefault(message_id, set())
			reporters.add(reporter_id)
			message.report_count = len(reporters)
			return message

	def delete_message(self, route_id: str, message_id: str) -> bool:
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return False
			message = session.find_message(message_id)
			if message is None:
				return False
			session.messages.remove(message)
			session.reports.pop(message_id, None)
			return True

	def ban_user(self, route_id: str, connection_id: str) -> bool:
		"""Ban for the rest of this session and evict from the roster."""
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return False
			session.banned.add(connection_id)
			if session.participants.pop(connection_id, None) is not None:
				self._memberships.pop(connection_id, None)
			return True

	def record_violation(self, route_id: str, connection_id: str) -> int:
		"""Increment and return the connection's violation count (0 without a session)."""
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return 0
			count = session.violations.get(connection_id, 0) + 1
			session.violations[connection_id] = count
			return count

	def violations(self, route_id: str, connection_id: str) -> int:
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return 0
			return session.violations.get(connection_id, 0)

	def should_close(self, route_id: str) -> bool:
		with self._lock:
			session = self._sessions.get(route_id)
			if session is None:
				return False
			return self.now() >= session.ends_at
