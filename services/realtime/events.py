"""Wire shapes of the chat socket's outbound frames and admin snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from models.session_models import ChatMessage, ChatSession, Participant

CHAT_JOINED = "chat.joined"
USER_JOINED = "user.joined"
USER_LEFT = "user.left"
MESSAGE_NEW = "message.new"
MESSAGE_DELETED = "message.deleted"
CHAT_CLOSED = "chat.closed"
KICKED = "kicked"
ERROR = "error"
REPORT_RECEIVED = "report.received"


def _iso(value: datetime) -> str:
	return value.isoformat()


def participant_payload(participant: Participant) -> Dict[str, Any]:
	return {"username": participant.username, "joined_at": _iso(participant.joined_at)}


def message_payload(message: ChatMessage) -> Dict[str, Any]:
	return {
		"id": message.id,
		"username": message.username,
		"text": message.text,
		"timestamp": _iso(message.created_at),
	}


def chat_joined(session: ChatSession) -> Dict[str, Any]:
	return {
		"type": CHAT_JOINED,
		"session_id": session.session_id,
		"chat_name": session.chat_name,
		"participants": [participant_payload(p) for p in session.participants.values()],
		"messages": [message_payload(m) for m in session.messages],
	}


def user_joined(username: str) -> Dict[str, Any]:
	return {"type": USER_JOINED, "username": username}


def user_left(username: str) -> Dict[str, Any]:
	return {"type": USER_LEFT, "username": username}


def new_message(message: ChatMessage) -> Dict[str, Any]:
	return {"type": MESSAGE_NEW, **message_payload(message)}


def message_deleted(message_id: str) -> Dict[str, Any]:
	return {"type": MESSAGE_DELETED, "message_id": message_id}


def chat_closed(reason: str) -> Dict[str, Any]:
	return {"type": CHAT_CLOSED, "reason": reason}


def kicked(reason: str) -> Dict[str, Any]:
	return {"type": KICKED, "reason": reason}


def error_notice(detail: str) -> Dict[str, Any]:
	return {"type": ERROR, "detail": detail}


def report_received(message_id: str) -> Dict[str, Any]:
	return {"type": REPORT_RECEIVED, "message_id": message_id}


def session_summary(session: ChatSession) -> Dict[str, Any]:
	"""Row shown in the admin list of live sessions."""
	return {
		"session_id": session.session_id,
		"route_id": session.route_id,
		"route_name": session.route_name,
		"chat_name": session.chat_name,
		"started_at": _iso(session.started_at),
		"ends_at": _iso(session.ends_at),
		"participant_count": len(session.participants),
		"message_count": len(session.messages),
		"report_count": len(session.reports),
	}


def session_detail(session: ChatSession) -> Dict[str, Any]:
	"""Full admin snapshot, including per-message report counts."""
	detail = session_summary(session)
	detail["participants"] = [
		{"connection_id": p.connection_id, **participant_payload(p)} for p in session.participants.values()
	]
	detail["messages"] = [
		{**message_payload(m), "report_count": m.report_count, "reported": m.reported}
		for m in session.messages
	]
	return detail
