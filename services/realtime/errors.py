"""Failures raised by chat operations and reported back to one connection."""

from __future__ import annotations


class ChatError(Exception):
	"""Base class; ``detail`` is safe to show to the user verbatim."""

	kind = "error"

	def __init__(self, detail: str) -> None:
		super().__init__(detail)
		self.detail = detail


class ValidationError(ChatError):
	"""Malformed username or message; nothing was changed."""

	kind = "validation"


class PolicyViolation(ChatError):
	"""Profanity or spam rejected by moderation."""

	kind = "policy"


class NotFoundError(ChatError):
	"""Route, session or message is gone."""

	kind = "not_found"


class RateLimited(ChatError):
	"""Cooldown or per-minute allowance not yet replenished."""

	kind = "rate_limited"


class StateConflict(ChatError):
	"""The request contradicts current state, e.g. a banned connection joining."""

	kind = "conflict"
