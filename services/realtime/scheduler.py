"""Open and close route chats as their weekly windows begin and end."""
from __future__ import annotations

import asyncio
import logging
import math
from datetime import tzinfo
from typing import Optional

from dal.route_dal import RouteDAL
from models.route_record import ScheduleRecord
from services.realtime import events
from services.realtime.connection_hub import ConnectionHub
from services.realtime.session_store import SessionStore
from utils.time_window import is_schedule_active

logger = logging.getLogger(__name__)

SCHEDULED_CLOSE_REASON = "The chat has closed. Thanks for riding along!"
ADMIN_CLOSE_REASON = "The chat was closed by an administrator"


class SessionScheduler:
	"""Poll every schedule on a fixed tick.

	Ticks never overlap: a tick requested while another runs is skipped, and
	the periodic loop drops due slots it overran instead of queueing them.
	One route's failure is logged and does not stop the others.
	"""

	def __init__(
		self,
		store: SessionStore,
		hub: ConnectionHub,
		route_dal: RouteDAL,
		tz: tzinfo,
		interval_seconds: float = 60.0,
	) -> None:
		self.store = store
		self.hub = hub
		self.route_dal = route_dal
		self.tz = tz
		self.interval_seconds = interval_seconds
		self._tick_lock = asyncio.Lock()
		self._task: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._task is not None and not self._task.done()

	async def tick(self) -> bool:
		"""Run one pass over all schedules. Returns False when skipped as busy."""
		if self._tick_lock.locked():
			logger.warning("Scheduler tick skipped; previous tick still running")
			return False
		async with self._tick_lock:
			try:
				schedules = await self.route_dal.list_schedules()
			except Exception:
				logger.exception("Scheduler could not load schedules")
				schedules = []
			for schedule in schedules:
				try:
					await self._process(schedule)
				except Exception:
					logger.exception("Scheduler failed for schedule %s on route %s", schedule.id, schedule.route_id)
			await self._close_expired()
		return True

	async def _close_expired(self) -> None:
		"""Close live sessions past their end, whether or not a schedule still names them."""
		for session in self.store.all():
			try:
				if self.store.should_close(session.route_id):
					await self.close_session(session.route_id, SCHEDULED_CLOSE_REASON)
			except Exception:
				logger.exception("Scheduler failed to close expired chat on route %s", session.route_id)

	async def _process(self, schedule: ScheduleRecord) -> None:
		route = await self.route_dal.get_route(schedule.route_id)
		if route is None:
			return
		if self.store.get(route.id) is None and is_schedule_active(schedule, self.store.now(), self.tz):
			self.store.open(route, schedule)

	async def close_session(self, route_id: str, reason: str) -> bool:
		"""Notify the room, evict its connections, then wipe the session."""
		if self.store.get(route_id) is None:
			return False
		async with self.hub.room_lock(route_id):
			if self.store.get(route_id) is None:
				return False
			await self.hub.broadcast(route_id, events.chat_closed(reason))
			evicted = await self.hub.evict_room(route_id)
			closed = self.store.close(route_id)
			self.hub.drop_room_lock(route_id)
		logger.info("Closed chat for route %s (%d connections evicted)", route_id, evicted)
		return closed

	async def force_close(self, route_id: str) -> bool:
		return await self.close_session(route_id, ADMIN_CLOSE_REASON)

	async def run_periodic(self) -> None:
		"""Tick now and then every interval until cancelled."""
		loop = asyncio.get_running_loop()
		next_due = loop.time()
		while True:
			try:
				await self.tick()
				next_due += self.interval_seconds
				now = loop.time()
				if now > next_due:
					missed = math.ceil((now - next_due) / self.interval_seconds)
					logger.warning("Scheduler overran; skipping %d tick(s)", missed)
					next_due += missed * self.interval_seconds
				await asyncio.sleep(next_due - now)
			except asyncio.CancelledError:
				break
			except Exception:
				logger.exception("Scheduler loop error")
				await asyncio.sleep(self.interval_seconds)

	def start(self) -> None:
		if not self.running:
			self._task = asyncio.create_task(self.run_periodic())

	async def stop(self) -> None:
		task, self._task = self._task, None
		if task is None:
			return
		task.cancel()
		try:
			await task
		except asyncio.CancelledError:
			pass
