"""Session domain models for live route chats."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Set


@dataclass
class Participant:
	"""A connection currently joined to a session."""

	connection_id: str
	username: str
	joined_at: datetime


@dataclass
class ChatMessage:
	"""A message accepted into a session's history."""

	id: str
	connection_id: str
	username: str
	text: str
	created_at: datetime
	report_count: int = 0

	@property
	def reported(self) -> bool:
		return self.report_count > 0


@dataclass
class ChatSession:
	"""One activation of a route's chat; every collection dies with it."""

	session_id: str
	route_id: str
	route_name: str
	chat_name: str
	started_at: datetime
	ends_at: datetime
	participants: Dict[str, Participant] = field(default_factory=dict)
	messages: List[ChatMessage] = field(default_factory=list)
	banned: Set[str] = field(default_factory=set)
	reports: Dict[str, Set[str]] = field(default_factory=dict)
	violations: Dict[str, int] = field(default_factory=dict)

	def find_message(self, message_id: str) -> ChatMessage | None:
		for message in self.messages:
			if message.id == message_id:
				return message
		return None

	def clear(self) -> None:
		"""Empty every per-session collection."""
		self.participants.clear()
		self.messages.clear()
		self.banned.clear()
		self.reports.clear()
		self.violations.clear()
