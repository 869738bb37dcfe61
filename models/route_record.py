from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RouteRecord:
    """In-memory representation of a row in the ROUTE table.

    Attributes:
        id: Operator-chosen route identifier (e.g. the bus line number).
        name: Display name shown to riders.
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: str
    name: str
    created_at: Optional[int] = None


@dataclass
class ScheduleRecord:
    """In-memory representation of a row in the SCHEDULE table.

    Attributes:
        id: Primary key (None for new records).
        route_id: Route the schedule belongs to.
        days_of_week: Weekday numbers, 0 = Sunday through 6 = Saturday.
        start_time: Window opening time of day, "HH:MM".
        end_time: Window closing time of day, "HH:MM"; must be after start_time.
        chat_name: Display name given to sessions opened by this schedule.
        is_active: Inactive schedules never open sessions.
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: Optional[str]
    route_id: str
    days_of_week: List[int] = field(default_factory=list)
    start_time: str = "00:00"
    end_time: str = "00:00"
    chat_name: str = ""
    is_active: bool = True
    created_at: Optional[int] = None
