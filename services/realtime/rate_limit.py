"""Per-connection throttles for the chat socket."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, Optional


class Cooldown:
	"""Minimum interval between two accepted actions.

	Rejected attempts leave the timer where it was, so hammering the socket
	does not extend the wait.
	"""

	def __init__(self, interval_ms: int, clock: Callable[[], float] = time.monotonic) -> None:
		self.interval = interval_ms / 1000.0
		self._clock = clock
		self._last: Optional[float] = None

	def try_acquire(self) -> bool:
		now = self._clock()
		if self._last is not None and now - self._last < self.interval:
			return False
		self._last = now
		return True


class SlidingWindowLimiter:
	"""Allow at most ``max_events`` inside any ``window_seconds`` span."""

	def __init__(
		self,
		max_events: int,
		window_seconds: float = 60.0,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self.max_events = max_events
		self.window_seconds = window_seconds
		self._clock = clock
		self._events: Deque[float] = deque()

	def try_acquire(self) -> bool:
		now = self._clock()
		cutoff = now - self.window_seconds
		while self._events and self._events[0] <= cutoff:
			self._events.popleft()
		if len(self._events) >= self.max_events:
			return False
		self._events.append(now)
		return True
